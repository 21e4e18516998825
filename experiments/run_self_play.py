#!/usr/bin/env python3
"""Train the value/policy network by self-play on a plan document.

Usage:
    python experiments/run_self_play.py \
        --config configs/default.yaml \
        --plan configs/example_plan.yaml \
        --output_dir runs/example \
        --num_games 50
"""

import argparse
import json
import logging
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from mcts_planner.engine import EngineConfig, create_construction_engine
from mcts_planner.core.planning import PlanDocument
from mcts_planner.utils.logging import setup_logging
from mcts_planner.utils.seed import set_seed

logger = logging.getLogger(__name__)


def main():
    parser = argparse.ArgumentParser(description="Self-play training")
    parser.add_argument("--config", type=str, required=True, help="Engine config file")
    parser.add_argument("--override", type=str, default=None, help="Config overrides")
    parser.add_argument("--plan", type=str, required=True, help="Plan document (YAML)")
    parser.add_argument("--output_dir", type=str, required=True, help="Output directory")
    parser.add_argument("--num_games", type=int, default=None, help="Games to play")
    parser.add_argument("--resume", action="store_true",
                        help="Continue from experience and checkpoint in output_dir")
    parser.add_argument("--seed", type=int, default=None, help="Random seed (overrides config)")

    args = parser.parse_args()

    output_dir = Path(args.output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)
    setup_logging(log_file=str(output_dir / "self_play.log"))

    config = EngineConfig.from_yaml(args.config, args.override)
    if args.seed is not None:
        config.seed = args.seed
    if config.seed is not None:
        set_seed(config.seed)

    experience_path = output_dir / "experience.json"
    checkpoint_path = output_dir / "value_policy.pt"

    document = PlanDocument.from_yaml(args.plan)
    with create_construction_engine(document, config) as engine:
        if args.resume and experience_path.exists():
            engine.load_experience(
                str(experience_path),
                str(checkpoint_path) if checkpoint_path.exists() else None
            )

        engine.self_play(args.num_games)
        engine.save_experience(str(experience_path), str(checkpoint_path))

        metrics = engine.get_metrics()

    with open(output_dir / "metrics.json", 'w') as f:
        json.dump(metrics, f, indent=2)

    logger.info(f"Games: {metrics['games_played']} "
                f"(completed={metrics['completed_games']}, truncated={metrics['truncated_games']})")
    logger.info(f"Win rate: {metrics['win_rate']:.3f}, "
                f"outcome: {metrics['outcome_mean']:.3f} ± {metrics['outcome_sem']:.3f}")
    logger.info(f"Replay buffer: {metrics['replay_buffer_size']} entries")


if __name__ == "__main__":
    main()
