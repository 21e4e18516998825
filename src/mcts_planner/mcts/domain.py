"""Domain interface consumed by the search.

The search never looks inside a state. Everything it needs to know about
the problem goes through a SearchDomain: which actions are legal, what
applying one does, when an episode is over and what it was worth.
"""

import hashlib
import json
from abc import ABC, abstractmethod
from typing import Any, Hashable, List


class SearchDomain(ABC):
    """Pluggable collaborators for MCTS.

    Subclasses must implement the five transition/evaluation methods.
    The key and codec hooks have JSON-based defaults that work for states
    and actions made of plain dicts, lists, strings and numbers.
    """

    @abstractmethod
    def initial_state(self) -> Any:
        """Fresh state for a new self-play game."""

    @abstractmethod
    def legal_actions(self, state: Any) -> List[Any]:
        """Actions that may be applied to state."""

    @abstractmethod
    def next_state(self, state: Any, action: Any) -> Any:
        """Apply action to state. Must not mutate state."""

    @abstractmethod
    def is_terminal(self, state: Any) -> bool:
        """Whether the episode is over at state."""

    @abstractmethod
    def terminal_value(self, state: Any) -> float:
        """Value of a terminal state, roughly in [-1, 1].

        Only called when is_terminal(state) is true.
        """

    def action_key(self, action: Any) -> Hashable:
        """Identifier used to key children and policies."""
        return action

    def state_key(self, state: Any) -> str:
        """Stable identifier used to decide tree reuse."""
        payload = json.dumps(self.encode_state(state), sort_keys=True, default=str)
        return hashlib.sha1(payload.encode('utf-8')).hexdigest()

    def encode_state(self, state: Any) -> Any:
        """JSON-safe representation of state."""
        return state

    def decode_state(self, data: Any) -> Any:
        return data

    def encode_action(self, action: Any) -> Any:
        """JSON-safe representation of action."""
        return action

    def decode_action(self, data: Any) -> Any:
        return data

    def encode_action_key(self, key: Hashable) -> Any:
        """JSON-safe representation of an action key."""
        return key

    def decode_action_key(self, data: Any) -> Hashable:
        # JSON turns tuples into lists
        return tuple(data) if isinstance(data, list) else data
