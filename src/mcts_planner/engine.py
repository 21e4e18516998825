"""Planning engine: search, self-play, metrics and persistence in one place.

All collaborators are passed in at construction time.
"""

import json
import logging
import time
from dataclasses import asdict, dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

from .mcts.domain import SearchDomain
from .mcts.evaluator import Evaluator, UniformEvaluator
from .mcts.search import CancellationToken, MCTSConfig, MCTSSearch, SearchResult
from .models.value_policy import NetworkConfig, create_construction_evaluator
from .training.replay_buffer import ReplayBuffer
from .training.self_play import GameRecord, SelfPlayConfig, SelfPlayMetrics, SelfPlayRunner
from .training.trainer import TrainingConfig
from .utils.config import build_dataclass, load_config

logger = logging.getLogger(__name__)

EXPERIENCE_FORMAT_VERSION = 1


@dataclass
class EngineConfig:
    """Top-level configuration, one section per component."""
    mcts: MCTSConfig = field(default_factory=MCTSConfig)
    self_play: SelfPlayConfig = field(default_factory=SelfPlayConfig)
    network: NetworkConfig = field(default_factory=NetworkConfig)
    training: TrainingConfig = field(default_factory=TrainingConfig)
    replay_buffer_size: int = 100000
    seed: Optional[int] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> 'EngineConfig':
        sections = {
            'mcts': MCTSConfig,
            'self_play': SelfPlayConfig,
            'network': NetworkConfig,
            'training': TrainingConfig,
        }
        unknown = sorted(set(data) - set(sections) - {'replay_buffer_size', 'seed'})
        if unknown:
            raise ValueError(f"Unknown config sections: {', '.join(unknown)}")

        kwargs = {name: build_dataclass(section_cls, data.get(name), name)
                  for name, section_cls in sections.items()}
        if 'replay_buffer_size' in data:
            kwargs['replay_buffer_size'] = int(data['replay_buffer_size'])
        if data.get('seed') is not None:
            kwargs['seed'] = int(data['seed'])
        return cls(**kwargs)

    @classmethod
    def from_yaml(cls, path: str, override_path: Optional[str] = None) -> 'EngineConfig':
        return cls.from_dict(load_config(path, override_path))

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


class PlanningEngine:
    """MCTS planning with self-play training.

    Usage:
        with PlanningEngine(domain, evaluator, config) as engine:
            result = engine.search(state, num_simulations=200)
            engine.self_play(num_games=20)
            engine.save_experience("experience.json", "weights.pt")
    """

    def __init__(
        self,
        domain: SearchDomain,
        evaluator: Optional[Evaluator] = None,
        config: Optional[EngineConfig] = None
    ):
        self.config = config or EngineConfig()
        self.domain = domain
        self.evaluator = evaluator or UniformEvaluator()

        if self.config.seed is not None and self.config.self_play.seed is None:
            self.config.self_play.seed = self.config.seed

        self.searcher = MCTSSearch(domain, self.evaluator, self.config.mcts)
        self.replay_buffer = ReplayBuffer(self.config.replay_buffer_size)
        self.runner = SelfPlayRunner(
            self.searcher, self.evaluator, self.replay_buffer, self.config.self_play
        )

    def __enter__(self) -> 'PlanningEngine':
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def search(
        self,
        root_state: Any,
        num_simulations: Optional[int] = None,
        cancel_token: Optional[CancellationToken] = None,
        timeout: Optional[float] = None
    ) -> SearchResult:
        """Recommend an action for root_state. See MCTSSearch.search."""
        return self.searcher.search(root_state, num_simulations, cancel_token, timeout)

    def self_play(self, num_games: Optional[int] = None) -> list:
        """Play self-play games, filling the replay buffer and training."""
        return self.runner.self_play(num_games)

    def play_game(self) -> GameRecord:
        game = self.runner.play_game()
        self.runner.metrics.record(game)
        self.runner.add_to_replay_buffer(game)
        return game

    def get_metrics(self) -> Dict[str, Any]:
        metrics = self.runner.metrics.summary()
        metrics.update({
            'replay_buffer_size': len(self.replay_buffer),
            'tree_size': self.searcher.node_count,
            'nodes_created': self.searcher.nodes_created,
            'workers': self.config.mcts.num_workers,
        })
        return metrics

    def save_experience(self, path: str, checkpoint_path: Optional[str] = None) -> None:
        """Write the replay buffer and metrics as JSON, weights via torch.

        Args:
            path: Experience JSON file
            checkpoint_path: Optional network checkpoint file
        """
        payload = {
            'format_version': EXPERIENCE_FORMAT_VERSION,
            'saved_at': time.strftime("%Y-%m-%d %H:%M:%S"),
            'config': self.config.to_dict(),
            'metrics': asdict(self.runner.metrics),
            'replay_buffer': self.replay_buffer.to_records(self.domain),
        }
        p = Path(path)
        p.parent.mkdir(parents=True, exist_ok=True)
        with open(p, 'w', encoding='utf-8') as f:
            json.dump(payload, f)
        logger.info(f"Saved {len(payload['replay_buffer'])} replay entries to {p}")

        if checkpoint_path:
            self._require_weights().save(checkpoint_path)

    def load_experience(self, path: str, checkpoint_path: Optional[str] = None) -> None:
        """Restore what save_experience wrote.

        Replay entries are appended to the current buffer (the capacity
        still applies); metrics are replaced.
        """
        p = Path(path)
        if not p.exists():
            raise FileNotFoundError(f"Experience file not found: {p}")
        with open(p, 'r', encoding='utf-8') as f:
            payload = json.load(f)

        version = payload.get('format_version')
        if version != EXPERIENCE_FORMAT_VERSION:
            raise ValueError(f"Unsupported experience format version: {version}")

        self.replay_buffer.load_records(payload.get('replay_buffer') or [], self.domain)
        if payload.get('metrics'):
            self.runner.metrics = SelfPlayMetrics(**payload['metrics'])
        logger.info(f"Loaded experience from {p} ({len(self.replay_buffer)} replay entries)")

        if checkpoint_path:
            self._require_weights().load(checkpoint_path)

    def close(self, experience_path: Optional[str] = None, checkpoint_path: Optional[str] = None) -> None:
        """Shut down the worker pool.

        Experience is not saved unless experience_path is given, in which
        case save_experience runs first.
        """
        try:
            if experience_path:
                self.save_experience(experience_path, checkpoint_path)
        finally:
            self.searcher.close()

    def _require_weights(self):
        if not hasattr(self.evaluator, 'save') or not hasattr(self.evaluator, 'load'):
            raise TypeError(f"{type(self.evaluator).__name__} has no weights to save or load")
        return self.evaluator


def create_construction_engine(
    document,
    config: Optional[EngineConfig] = None,
    neural: bool = True,
    device=None
) -> PlanningEngine:
    """Engine over a PlanDocument with the default analyzer.

    Args:
        document: PlanDocument to analyze
        config: Engine configuration
        neural: Use the value/policy network (otherwise UniformEvaluator)
        device: Torch device for the network
    """
    from .core.planning.analyzers import PlanDocumentAnalyzer
    from .core.planning.domain import ConstructionPlanDomain

    config = config or EngineConfig()
    domain = ConstructionPlanDomain(
        PlanDocumentAnalyzer(document),
        plan_id=document.plan_id,
        hoai_phase=document.hoai_phase
    )
    if neural:
        evaluator = create_construction_evaluator(config.network, config.training, device)
    else:
        evaluator = UniformEvaluator()
    return PlanningEngine(domain, evaluator, config)
