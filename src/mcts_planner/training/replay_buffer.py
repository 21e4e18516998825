"""Experience replay for self-play training.

Bounded FIFO: once full, every append evicts the oldest entry. Self-play
is the single writer; training reads sampled copies.
"""

import threading
from collections import deque
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Optional

import numpy as np

from ..mcts.domain import SearchDomain


@dataclass
class ReplayEntry:
    """One position from a finished self-play game.

    Attributes:
        state: Position the search was run from
        action: Action actually played
        outcome: Training target, the game's final value
        search_statistics: Root visit distribution and tree stats
        move_number: Ply within the game
        truncated: Game hit max_depth without reaching a terminal state
    """
    state: Any
    action: Any
    outcome: float
    search_statistics: Dict[str, Any] = field(default_factory=dict)
    move_number: int = 0
    truncated: bool = False


class ReplayBuffer:
    """Bounded FIFO of replay entries."""

    def __init__(self, capacity: int = 100000):
        if capacity < 1:
            raise ValueError(f"Replay buffer capacity must be positive, got {capacity}")
        self.capacity = capacity
        self._entries = deque(maxlen=capacity)
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self._entries)

    def append(self, entry: ReplayEntry) -> None:
        with self._lock:
            self._entries.append(entry)

    def extend(self, entries: Iterable[ReplayEntry]) -> None:
        with self._lock:
            self._entries.extend(entries)

    def clear(self) -> None:
        with self._lock:
            self._entries.clear()

    def snapshot(self) -> List[ReplayEntry]:
        """Copy of the entries, oldest first."""
        with self._lock:
            return list(self._entries)

    def sample(self, batch_size: int, rng: Optional[np.random.RandomState] = None) -> Optional[List[ReplayEntry]]:
        """Sample batch_size entries without replacement.

        Returns:
            The batch, or None if the buffer holds fewer than batch_size
            entries (batches are never padded)
        """
        rng = rng or np.random.RandomState()
        entries = self.snapshot()
        if len(entries) < batch_size:
            return None
        indices = rng.choice(len(entries), size=batch_size, replace=False)
        return [entries[i] for i in indices]

    def to_records(self, domain: SearchDomain) -> List[Dict[str, Any]]:
        """JSON-safe records, oldest first."""
        return [entry_to_record(entry, domain) for entry in self.snapshot()]

    def load_records(self, records: Iterable[Dict[str, Any]], domain: SearchDomain) -> None:
        """Append records produced by to_records."""
        self.extend(entry_from_record(record, domain) for record in records)


def entry_to_record(entry: ReplayEntry, domain: SearchDomain) -> Dict[str, Any]:
    stats = dict(entry.search_statistics)
    if 'visit_distribution' in stats:
        # [key, p] pairs: JSON object keys would all become strings
        stats['visit_distribution'] = [
            [domain.encode_action_key(key), float(p)]
            for key, p in stats['visit_distribution'].items()
        ]
    return {
        'state': domain.encode_state(entry.state),
        'action': domain.encode_action(entry.action),
        'outcome': float(entry.outcome),
        'search_statistics': stats,
        'move_number': entry.move_number,
        'truncated': entry.truncated,
    }


def entry_from_record(record: Dict[str, Any], domain: SearchDomain) -> ReplayEntry:
    stats = dict(record.get('search_statistics') or {})
    if isinstance(stats.get('visit_distribution'), list):
        stats['visit_distribution'] = {
            domain.decode_action_key(key): float(p)
            for key, p in stats['visit_distribution']
        }
    return ReplayEntry(
        state=domain.decode_state(record['state']),
        action=domain.decode_action(record['action']),
        outcome=float(record['outcome']),
        search_statistics=stats,
        move_number=int(record.get('move_number', 0)),
        truncated=bool(record.get('truncated', False)),
    )
