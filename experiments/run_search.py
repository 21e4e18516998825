#!/usr/bin/env python3
"""Recommend the next analysis step for a plan document.

Runs one MCTS search from a given position and prints the recommended
action with the root visit distribution.

Usage:
    python experiments/run_search.py \
        --config configs/default.yaml \
        --plan configs/example_plan.yaml \
        --num_simulations 400 \
        --checkpoint checkpoints/value_policy.pt
"""

import argparse
import logging
import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).parent.parent / "src"))

from mcts_planner.engine import EngineConfig, create_construction_engine
from mcts_planner.core.planning import PlanDocument, get_action
from mcts_planner.utils.logging import setup_logging
from mcts_planner.utils.seed import set_seed

logger = logging.getLogger(__name__)


def main():
    parser = argparse.ArgumentParser(description="Run MCTS search over a plan")
    parser.add_argument("--config", type=str, required=True, help="Engine config file")
    parser.add_argument("--plan", type=str, required=True, help="Plan document (YAML)")
    parser.add_argument("--num_simulations", type=int, default=None, help="Simulation budget")
    parser.add_argument("--timeout", type=float, default=None, help="Wall-clock limit in seconds")
    parser.add_argument("--history", type=str, nargs="*", default=[],
                        help="Action ids already applied to the plan")
    parser.add_argument("--checkpoint", type=str, default=None, help="Network checkpoint")
    parser.add_argument("--uniform", action="store_true", help="Use the uniform evaluator")
    parser.add_argument("--log_level", type=str, default="INFO", help="Logging level")

    args = parser.parse_args()

    setup_logging(args.log_level)
    config = EngineConfig.from_yaml(args.config)
    if config.seed is not None:
        set_seed(config.seed)

    document = PlanDocument.from_yaml(args.plan)
    engine = create_construction_engine(document, config, neural=not args.uniform)

    with engine:
        if args.checkpoint and not args.uniform:
            engine.evaluator.load(args.checkpoint)

        state = engine.domain.initial_state()
        for action_id in args.history:
            state = engine.domain.next_state(state, get_action(action_id))

        result = engine.search(state, args.num_simulations, timeout=args.timeout)

    if result.action is None:
        logger.info("No recommendation: the root was never expanded")
        return

    logger.info(f"Recommended action: {result.action.id} "
                f"(confidence={result.confidence:.3f}, "
                f"simulations={result.simulations_run}, "
                f"elapsed={result.elapsed_time:.2f}s)")
    for key, share in sorted(result.visit_distribution.items(), key=lambda item: -item[1]):
        logger.info(f"  {key:<22} {share:.3f} ({result.visit_counts[key]} visits)")
    logger.info(f"Tree: {result.tree_stats.to_dict()}")


if __name__ == "__main__":
    main()
