"""Dense training backend: losses, optimizers, models and layer derivation."""

from .layers import symmetric_dnn_generator
from .losses import REGISTRY as LOSS_REGISTRY
from .model import DenseLayerSpec, SequentialModel, create_model
from .optimizers import create_optimizer

__all__ = [
    "DenseLayerSpec",
    "LOSS_REGISTRY",
    "SequentialModel",
    "create_model",
    "create_optimizer",
    "symmetric_dnn_generator",
]
