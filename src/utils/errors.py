"""Exception types raised by the prediction service.

Malformed upstream records are never an error (see src/models/records.py);
only missing entities and failed writes surface to callers.
"""


class PredictionError(Exception):
    """Base class for prediction service errors."""


class NotFoundError(PredictionError):
    """A user profile or recipe required for the operation does not exist."""

    def __init__(self, entity: str, entity_id: str) -> None:
        self.entity = entity
        self.entity_id = entity_id
        super().__init__(f"{entity} not found: {entity_id}")


class PersistenceError(PredictionError):
    """A training sample could not be written to the outcome store."""
