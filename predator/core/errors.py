"""Error taxonomy raised by Predator sessions."""

from __future__ import annotations


class PredatorError(RuntimeError):
    """Base class for every terminal Predator error.

    ``code`` mirrors the ``pred::<Name>`` identifiers surfaced to users.
    """

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.code = f"pred::{type(self).__name__}"


class InstanceNotTrainedYet(PredatorError):
    """Plotting or prediction requested before the session trained a model."""


class NoPredictionModel(PredatorError):
    """No model could be resolved for a prediction line."""


class NoAggregationModel(PredatorError):
    """No named model could be resolved for snapshot aggregation."""


class IncorrectInputType(PredatorError):
    """A prediction input is not a finite number."""


class NoModelAvailable(PredatorError):
    """Model reference resolution returned nothing."""


class BadInput(PredatorError):
    """Prediction input arity does not match the trained shape."""

    def __init__(self, model_name: str, expected: int, actual: int) -> None:
        super().__init__(
            f"Model {model_name!r} expects {expected} inputs but got {actual}."
        )
        self.model_name = model_name
        self.expected = expected
        self.actual = actual


class ConfigLookupFailure(PredatorError):
    """No persisted configuration exists and no fallback was permitted."""


class DNNGeneratorException(PredatorError):
    """A symmetric dense stack cannot satisfy the resolved shapes."""


__all__ = [
    "PredatorError",
    "InstanceNotTrainedYet",
    "NoPredictionModel",
    "NoAggregationModel",
    "IncorrectInputType",
    "NoModelAvailable",
    "BadInput",
    "ConfigLookupFailure",
    "DNNGeneratorException",
]
