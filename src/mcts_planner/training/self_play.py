"""Self-play data generation.

Each game runs search from the current position, plays a move (sampled
from visit counts early on, greedy later), and repeats until the domain
reports a terminal state or max_depth moves were played. Every recorded
position gets the final outcome as its value target. Every
update_frequency games the evaluator takes one training step on a replay
sample.
"""

import logging
import time
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

import numpy as np
from scipy import stats
from scipy.special import softmax

from ..mcts.evaluator import Evaluator
from ..mcts.exceptions import SearchError
from ..mcts.search import MCTSSearch, SearchResult
from .replay_buffer import ReplayBuffer, ReplayEntry

logger = logging.getLogger(__name__)


@dataclass
class SelfPlayConfig:
    """Configuration for self-play."""
    num_games: int = 100
    # Simulations per move (None = search config default)
    simulations_per_move: Optional[int] = None
    # Hard cap on moves per game
    max_depth: int = 50
    # Moves sampled with temperature before switching to greedy play
    temperature_threshold: int = 30
    temperature: float = 1.0
    # Train every N games
    update_frequency: int = 10
    batch_size: int = 32
    # Training target for games cut off at max_depth; None keeps them out
    # of the replay buffer entirely
    truncated_value: Optional[float] = None
    seed: Optional[int] = None

    def __post_init__(self):
        if self.max_depth < 1:
            raise ValueError(f"max_depth must be positive, got {self.max_depth}")
        if self.update_frequency < 1:
            raise ValueError(f"update_frequency must be positive, got {self.update_frequency}")
        if self.batch_size < 1:
            raise ValueError(f"batch_size must be positive, got {self.batch_size}")


@dataclass
class GameRecord:
    """One finished self-play game.

    Attributes:
        history: Recorded positions, one per move
        outcome: Terminal value (None for a truncated game without a
            configured truncated_value)
        length: Number of moves played
        final_state: State after the last move
        truncated: Game hit max_depth without reaching a terminal state
        nodes_created: Search tree nodes created while playing the game
    """
    history: List[ReplayEntry]
    outcome: Optional[float]
    length: int
    final_state: Any
    truncated: bool = False
    nodes_created: int = 0


@dataclass
class SelfPlayMetrics:
    """Running self-play statistics."""
    games_played: int = 0
    completed_games: int = 0
    truncated_games: int = 0
    wins: int = 0
    total_moves: int = 0
    nodes_created: int = 0
    learning_progress: List[Dict[str, float]] = field(default_factory=list)
    outcomes: List[float] = field(default_factory=list)

    @property
    def win_rate(self) -> float:
        """Share of completed games with a positive outcome."""
        return self.wins / self.completed_games if self.completed_games else 0.0

    @property
    def average_depth(self) -> float:
        return self.total_moves / self.games_played if self.games_played else 0.0

    def record(self, game: GameRecord) -> None:
        self.games_played += 1
        self.total_moves += game.length
        self.nodes_created += game.nodes_created
        if game.truncated:
            self.truncated_games += 1
            return
        self.completed_games += 1
        self.outcomes.append(game.outcome)
        if game.outcome > 0:
            self.wins += 1

    def summary(self) -> Dict[str, Any]:
        outcomes = np.asarray(self.outcomes, dtype=np.float64)
        return {
            'games_played': self.games_played,
            'completed_games': self.completed_games,
            'truncated_games': self.truncated_games,
            'win_rate': self.win_rate,
            'average_depth': self.average_depth,
            'exploration_efficiency': self.nodes_created / self.games_played if self.games_played else 0.0,
            'outcome_mean': float(outcomes.mean()) if outcomes.size else 0.0,
            'outcome_sem': float(stats.sem(outcomes)) if outcomes.size > 1 else 0.0,
            'learning_progress': list(self.learning_progress),
        }


def sample_action(result: SearchResult, temperature: float, rng: np.random.RandomState) -> Any:
    """Sample a root action with probability ∝ N^(1/temperature).

    temperature <= 0 means greedy (result.action).
    """
    if temperature <= 0 or not result.visit_counts:
        return result.action

    keys = list(result.visit_counts.keys())
    visits = np.array([result.visit_counts[k] for k in keys], dtype=np.float64)
    if visits.sum() <= 0:
        probs = np.full(len(keys), 1.0 / len(keys))
    else:
        with np.errstate(divide='ignore'):
            logits = np.log(visits) / temperature
        probs = softmax(logits)

    index = rng.choice(len(keys), p=probs)
    return result.actions[keys[index]]


class SelfPlayRunner:
    """Plays games with search, fills the replay buffer and trains.

    Games are strictly sequential; training updates from completed games
    land before the next game starts.
    """

    def __init__(
        self,
        search: MCTSSearch,
        evaluator: Evaluator,
        replay_buffer: ReplayBuffer,
        config: Optional[SelfPlayConfig] = None
    ):
        self.search = search
        self.domain = search.domain
        self.evaluator = evaluator
        self.replay_buffer = replay_buffer
        self.config = config or SelfPlayConfig()
        self.rng = np.random.RandomState(self.config.seed)
        self.metrics = SelfPlayMetrics()

    def self_play(self, num_games: Optional[int] = None) -> List[GameRecord]:
        """Play num_games games (defaults to config)."""
        games = self.config.num_games if num_games is None else num_games
        logger.info(f"Starting self-play: {games} games")

        results = []
        for i in range(games):
            game = self.play_game()
            results.append(game)
            self.metrics.record(game)
            self.add_to_replay_buffer(game)

            if (i + 1) % self.config.update_frequency == 0:
                self.train_from_replay()

            if (i + 1) % 10 == 0:
                logger.info(f"Completed {i + 1}/{games} games "
                            f"(win_rate={self.metrics.win_rate:.3f}, "
                            f"buffer={len(self.replay_buffer)})")

        logger.info(f"Self-play completed: {games} games, "
                    f"{self.metrics.truncated_games} truncated in total")
        return results

    def play_game(self) -> GameRecord:
        """Play one game from the domain's initial state."""
        self.search.reset()
        nodes_before = self.search.nodes_created
        state = self.domain.initial_state()
        history: List[ReplayEntry] = []
        move = 0

        while not self.domain.is_terminal(state) and move < self.config.max_depth:
            result = self.search.search(state, self.config.simulations_per_move)
            if result.action is None:
                raise SearchError(
                    "Search produced no action; the root was never expanded "
                    "(use at least 2 simulations per move)"
                )

            if move < self.config.temperature_threshold:
                action = sample_action(result, self.config.temperature, self.rng)
            else:
                action = result.action

            history.append(ReplayEntry(
                state=state,
                action=action,
                outcome=0.0,
                search_statistics={
                    'visit_distribution': result.visit_distribution,
                    'confidence': result.confidence,
                    'tree_stats': result.tree_stats.to_dict(),
                    'simulations_run': result.simulations_run,
                },
                move_number=move,
            ))

            state = self.domain.next_state(state, action)
            move += 1

        truncated = not self.domain.is_terminal(state)
        if truncated:
            outcome = self.config.truncated_value
            logger.debug(f"Game truncated at max_depth={self.config.max_depth}")
        else:
            outcome = float(self.domain.terminal_value(state))

        for entry in history:
            entry.outcome = outcome if outcome is not None else 0.0
            entry.truncated = truncated

        return GameRecord(
            history=history,
            outcome=outcome,
            length=move,
            final_state=state,
            truncated=truncated,
            nodes_created=self.search.nodes_created - nodes_before,
        )

    def add_to_replay_buffer(self, game: GameRecord) -> int:
        """Append a game's positions; returns the number added."""
        if game.outcome is None:
            return 0
        self.replay_buffer.extend(game.history)
        return len(game.history)

    def train_from_replay(self) -> Optional[Dict[str, float]]:
        """One training step on a replay sample, skipped if underfull."""
        batch = self.replay_buffer.sample(self.config.batch_size, self.rng)
        if batch is None:
            logger.debug(f"Replay buffer has {len(self.replay_buffer)} entries, "
                         f"need {self.config.batch_size}; skipping training")
            return None

        result = self.evaluator.train(batch)
        loss = float(result['loss'])
        self.metrics.learning_progress.append({
            'timestamp': time.time(),
            'loss': loss,
            'games_played': self.metrics.games_played,
        })
        logger.info(f"Training complete. Loss: {loss:.4f}")
        return result
