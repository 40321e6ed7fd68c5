"""Unit tests for outcome recording and the update hook."""

from unittest.mock import AsyncMock

import pytest

from conftest import make_outcome
from src.models.models import FeatureVector
from src.prediction.outcomes import (
    LoggingUpdateStrategy,
    OutcomeRecorder,
    UpdateStrategy,
    outcome_to_label,
)
from src.stores.memory import InMemoryStore
from src.utils.errors import PersistenceError


def neutral_features() -> FeatureVector:
    return FeatureVector(**{name: 0.5 for name in FeatureVector.model_fields})


class CollectingStrategy(UpdateStrategy):
    def __init__(self):
        self.calls = []

    async def apply(self, features, label):
        self.calls.append((features, label))


class TestOutcomeToLabel:
    @pytest.mark.parametrize(
        "actual,label",
        [("success", 1.0), ("partial_success", 0.7), ("failure", 0.2), ("abandoned", 0.1), ("burnt", 0.5)],
    )
    def test_label_mapping(self, actual, label):
        assert outcome_to_label(actual) == label


class TestOutcomeRecorder:
    """Test persistence and update-strategy ordering."""

    @pytest.mark.asyncio
    async def test_persists_then_applies(self):
        store = InMemoryStore()
        strategy = CollectingStrategy()
        recorder = OutcomeRecorder(store, strategy)
        outcome = make_outcome("partial_success")

        sample = await recorder.record(neutral_features(), outcome)

        assert sample.label == 0.7
        assert store.training_samples[outcome.id] == sample
        assert store.outcomes[outcome.id] == outcome
        assert strategy.calls == [(sample.features, 0.7)]

    def test_default_strategy_logs(self):
        recorder = OutcomeRecorder(InMemoryStore())
        assert isinstance(recorder.update_strategy, LoggingUpdateStrategy)

    @pytest.mark.asyncio
    async def test_store_failure_wrapped_and_strategy_skipped(self):
        store = AsyncMock()
        store.persist_training_sample.side_effect = RuntimeError("disk full")
        strategy = CollectingStrategy()
        recorder = OutcomeRecorder(store, strategy)

        with pytest.raises(PersistenceError, match="disk full"):
            await recorder.record(neutral_features(), make_outcome())

        assert strategy.calls == []

    @pytest.mark.asyncio
    async def test_persistence_error_propagates_unchanged(self):
        store = AsyncMock()
        error = PersistenceError("constraint violated")
        store.persist_training_sample.side_effect = error

        with pytest.raises(PersistenceError) as exc:
            await OutcomeRecorder(store).record(neutral_features(), make_outcome())

        assert exc.value is error

    @pytest.mark.asyncio
    async def test_strategy_failure_does_not_fail_recording(self):
        store = InMemoryStore()
        strategy = AsyncMock(spec=UpdateStrategy)
        strategy.apply.side_effect = ValueError("learner crashed")
        outcome = make_outcome("failure")

        sample = await OutcomeRecorder(store, strategy).record(neutral_features(), outcome)

        assert sample.label == 0.2
        assert outcome.id in store.training_samples
        strategy.apply.assert_awaited_once()
