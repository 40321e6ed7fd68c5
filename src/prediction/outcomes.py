"""Outcome recording and the model update hook.

A realized cooking outcome becomes a training sample: the replayed feature
vector plus a continuous label. The sample is persisted, then handed to an
UpdateStrategy. The default strategy only logs; a real learner (online
gradient step, model-registry push) implements the same interface.

Label mapping (training only; metrics use a binary rule, see metrics.py):
    success -> 1.0, partial_success -> 0.7, failure -> 0.2, abandoned -> 0.1
"""

from abc import ABC, abstractmethod
from typing import Dict, Optional

from src.models.models import FeatureVector, Outcome, TrainingSample
from src.stores.base import OutcomeStore
from src.utils.errors import PersistenceError
from src.utils.logger import logger


OUTCOME_LABELS: Dict[str, float] = {
    "success": 1.0,
    "partial_success": 0.7,
    "failure": 0.2,
    "abandoned": 0.1,
}
DEFAULT_LABEL = 0.5


def outcome_to_label(actual_outcome: str) -> float:
    """Continuous training label for an outcome value (0.5 for unknown values)."""
    return OUTCOME_LABELS.get(actual_outcome, DEFAULT_LABEL)


class UpdateStrategy(ABC):
    """Hook invoked with every new training sample."""

    @abstractmethod
    async def apply(self, features: FeatureVector, label: float) -> None:
        """Update the model with one labelled feature vector."""


class LoggingUpdateStrategy(UpdateStrategy):
    """Default strategy: records the data point in the log, leaves weights unchanged."""

    async def apply(self, features: FeatureVector, label: float) -> None:
        logger.info(f"Model training data point: label={label}, features={features.model_dump()}")


class OutcomeRecorder:
    """Persist training samples and forward them to the update strategy."""

    def __init__(self, store: OutcomeStore, update_strategy: Optional[UpdateStrategy] = None) -> None:
        self.store = store
        self.update_strategy = update_strategy or LoggingUpdateStrategy()

    async def record(self, features: FeatureVector, outcome: Outcome) -> TrainingSample:
        """Persist the sample for an outcome, then apply the update strategy.

        Args:
            features: Feature vector replayed for the outcome's user and recipe.
            outcome: The realized outcome.

        Returns:
            The persisted TrainingSample.

        Raises:
            PersistenceError: If the store rejects the write.
        """
        label = outcome_to_label(outcome.actual_outcome)
        sample = TrainingSample(outcome=outcome, features=features, label=label)

        try:
            await self.store.persist_training_sample(sample)
        except PersistenceError:
            logger.error(f"Failed to persist training sample for outcome {outcome.id}")
            raise
        except Exception as e:
            logger.error(f"Failed to persist training sample for outcome {outcome.id}: {e}")
            raise PersistenceError(f"Failed to persist outcome {outcome.id}: {e}") from e

        # The sample is already stored, so a failing learner must not fail the recording
        try:
            await self.update_strategy.apply(features, label)
        except Exception as e:
            logger.warning(f"Update strategy {type(self.update_strategy).__name__} failed: {e}")

        return sample
