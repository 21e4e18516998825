from .value_policy import (
    NetworkConfig,
    ValuePolicyNetwork,
    NeuralEvaluator,
    create_construction_evaluator,
)

__all__ = [
    "NetworkConfig",
    "ValuePolicyNetwork",
    "NeuralEvaluator",
    "create_construction_evaluator",
]
