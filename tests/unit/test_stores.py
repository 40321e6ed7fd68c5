"""Unit tests for the in-memory and SQLAlchemy stores."""

from datetime import timedelta, timezone

import pytest

from conftest import BASE_TIME, make_outcome, make_profile, make_recipe
from src.models.models import FeatureVector, TrainingSample
from src.models.records import parse_outcomes
from src.prediction.service import SuccessPredictionService, initialize_prediction_service
from src.stores.base import AlternativeRecipeFinder, OutcomeStore, ProfileLoader, RecipeLoader, select_alternatives
from src.stores.memory import InMemoryStore
from src.stores.sql import CookingOutcomeRecord, SqlStore, resolve_database_url
from src.utils.errors import PersistenceError


def sample_for(outcome, label: float = 1.0) -> TrainingSample:
    features = FeatureVector(**{name: 0.5 for name in FeatureVector.model_fields})
    return TrainingSample(outcome=outcome, features=features, label=label)


@pytest.fixture
def sql_store() -> SqlStore:
    return SqlStore("sqlite:///:memory:")


class TestSelectAlternatives:
    """Test easier-recipe selection."""

    def test_ranked_by_difficulty_then_overlap_then_time(self):
        target = make_recipe(id="t", difficulty_level="hard", tags=["italian", "pasta"])
        candidates = [
            target,
            make_recipe(id="medium-both", difficulty_level="medium", tags=["italian", "pasta"]),
            make_recipe(id="easy-one-slow", difficulty_level="easy", tags=["pasta"], cook_time_minutes=50),
            make_recipe(id="easy-one-fast", difficulty_level="easy", tags=["Pasta"], cook_time_minutes=5),
            make_recipe(id="easy-both", difficulty_level="easy", tags=["italian", "pasta"]),
            make_recipe(id="unrelated", difficulty_level="easy", tags=["dessert"]),
        ]

        assert select_alternatives(target, candidates, limit=4) == [
            "easy-both",
            "easy-one-fast",
            "easy-one-slow",
            "medium-both",
        ]

    def test_harder_recipes_excluded(self):
        target = make_recipe(id="t", difficulty_level="easy", tags=["soup"])
        candidates = [make_recipe(id="h", difficulty_level="hard", tags=["soup"])]

        assert select_alternatives(target, candidates) == []

    def test_untagged_recipe_has_no_alternatives(self):
        target = make_recipe(id="t", tags=[])
        assert select_alternatives(target, [make_recipe(id="x")]) == []


class TestInMemoryStore:
    """Test the dictionary-backed store."""

    def test_implements_interfaces(self):
        store = InMemoryStore()
        for interface in (ProfileLoader, RecipeLoader, OutcomeStore, AlternativeRecipeFinder):
            assert isinstance(store, interface)

    @pytest.mark.asyncio
    async def test_lookups(self):
        store = InMemoryStore(profiles=[make_profile()], recipes=[make_recipe()])

        assert (await store.get_user_profile("user-1")).skill_level == 5
        assert await store.get_user_profile("nobody") is None
        assert (await store.get_recipe("recipe-1")).title == "Weeknight Pasta"

    @pytest.mark.asyncio
    async def test_history_newest_first_and_limited(self):
        store = InMemoryStore()
        for minutes_ago in (30, 10, 20):
            store.add_outcome(make_outcome(minutes_ago=minutes_ago))
        store.add_outcome(make_outcome(user_id="someone-else"))

        history = await store.get_outcome_history("user-1", limit=2)

        assert [o.created_at for o in history] == [
            BASE_TIME - timedelta(minutes=10),
            BASE_TIME - timedelta(minutes=20),
        ]

    @pytest.mark.asyncio
    async def test_persist_replaces_outcome(self):
        store = InMemoryStore()
        outcome = make_outcome()
        store.add_outcome(outcome)

        await store.persist_training_sample(sample_for(outcome))

        assert len(await store.get_outcomes_window()) == 1
        assert store.training_samples[outcome.id].label == 1.0


class TestSqlStore:
    """Test the SQLAlchemy store on in-memory SQLite."""

    def test_implements_interfaces(self, sql_store):
        for interface in (ProfileLoader, RecipeLoader, OutcomeStore, AlternativeRecipeFinder):
            assert isinstance(sql_store, interface)

    @pytest.mark.asyncio
    async def test_profile_and_recipe_round_trip(self, sql_store):
        sql_store.save_profile("user-1", {"skill_level": 7, "equipment_available": ["oven"]})
        sql_store.save_recipe("recipe-1", {"title": "Soup", "difficulty_level": "easy"})

        profile = await sql_store.get_user_profile("user-1")
        recipe = await sql_store.get_recipe("recipe-1")

        assert profile == {"id": "user-1", "skill_level": 7, "equipment_available": ["oven"]}
        assert recipe["title"] == "Soup"
        assert await sql_store.get_recipe("missing") is None

    @pytest.mark.asyncio
    async def test_persisted_sample_written_to_row(self, sql_store):
        outcome = make_outcome("partial_success", issues_encountered=["burnt garlic"])

        await sql_store.persist_training_sample(sample_for(outcome, label=0.7))

        session = sql_store.session_factory()
        try:
            record = session.get(CookingOutcomeRecord, outcome.id)
            assert record.training_label == 0.7
            assert record.feature_vector["skill_gap"] == 0.5
            assert record.issues_encountered == ["burnt garlic"]
        finally:
            session.close()

    @pytest.mark.asyncio
    async def test_persist_is_idempotent_per_outcome(self, sql_store):
        outcome = make_outcome()

        await sql_store.persist_training_sample(sample_for(outcome, label=1.0))
        await sql_store.persist_training_sample(sample_for(outcome, label=1.0))

        assert len(await sql_store.get_outcomes_window()) == 1

    @pytest.mark.asyncio
    async def test_history_newest_first(self, sql_store):
        for minutes_ago, actual in ((60, "failure"), (5, "success"), (30, "abandoned")):
            await sql_store.persist_training_sample(sample_for(make_outcome(actual, minutes_ago=minutes_ago)))

        history = await sql_store.get_outcome_history("user-1", limit=2)

        assert [row["actual_outcome"] for row in history] == ["success", "abandoned"]

    @pytest.mark.asyncio
    async def test_offset_timestamps_stored_as_utc(self, sql_store):
        east = timezone(timedelta(hours=5))
        earlier = make_outcome("failure", created_at=BASE_TIME.astimezone(east))
        later = make_outcome("success", created_at=BASE_TIME + timedelta(hours=1))
        await sql_store.persist_training_sample(sample_for(earlier))
        await sql_store.persist_training_sample(sample_for(later))

        history = parse_outcomes(await sql_store.get_outcome_history("user-1", limit=10))

        assert [o.actual_outcome for o in history] == ["success", "failure"]
        assert history[1].created_at == BASE_TIME

    @pytest.mark.asyncio
    async def test_window_skips_unscored_outcomes(self, sql_store):
        await sql_store.persist_training_sample(sample_for(make_outcome(predicted_success_score=None)))
        await sql_store.persist_training_sample(sample_for(make_outcome(predicted_success_score=0.9)))

        rows = await sql_store.get_outcomes_window()

        assert [row["predicted_success_score"] for row in rows] == [0.9]

    @pytest.mark.asyncio
    async def test_write_failure_raises_persistence_error(self, sql_store):
        CookingOutcomeRecord.__table__.drop(sql_store.engine)

        with pytest.raises(PersistenceError):
            await sql_store.persist_training_sample(sample_for(make_outcome()))

    @pytest.mark.asyncio
    async def test_find_alternative_recipes(self, sql_store):
        sql_store.save_recipe("hard", {"difficulty_level": "hard", "tags": ["curry"]})
        sql_store.save_recipe("easy", {"difficulty_level": "easy", "tags": ["curry"]})
        target = make_recipe(id="hard", difficulty_level="hard", tags=["curry"])

        assert await sql_store.find_alternative_recipes("user-1", target) == ["easy"]

    def test_resolve_database_url_defaults_to_sqlite(self, monkeypatch, tmp_path):
        from src.utils.config import config

        monkeypatch.setattr(config, "DATABASE_URL", None)
        monkeypatch.setattr(config, "SQLITE_DB_FILE", str(tmp_path / "db" / "outcomes.db"))

        url = resolve_database_url()

        assert url == f"sqlite:///{tmp_path / 'db' / 'outcomes.db'}"
        assert (tmp_path / "db").is_dir()

    def test_resolve_database_url_prefers_database_url(self, monkeypatch):
        from src.utils.config import config

        monkeypatch.setattr(config, "DATABASE_URL", "postgresql://u:p@db/outcomes")

        assert resolve_database_url() == "postgresql://u:p@db/outcomes"


class TestServiceOverSqlStore:
    @pytest.mark.asyncio
    async def test_predict_record_and_evaluate(self, sql_store, settings):
        sql_store.save_profile("user-1", {"skill_level": 6, "success_history": {"attempts": 4, "successes": 3}})
        sql_store.save_recipe("recipe-1", {"difficulty_level": "medium", "prep_time_minutes": 15, "cook_time_minutes": 15})
        service = SuccessPredictionService(sql_store, sql_store, sql_store, settings=settings)

        prediction = await service.predict_success("user-1", "recipe-1")
        await service.record_outcome_and_update(
            "user-1",
            "recipe-1",
            {"actual_outcome": "success", "predicted_success_score": prediction.success_score},
        )
        report = await service.get_model_metrics()

        assert report.total_predictions == 1
        assert report.accuracy == (1.0 if prediction.success_score > 0.5 else 0.0)

    def test_initialize_prediction_service_uses_one_store(self, sql_store):
        service = initialize_prediction_service(sql_store)

        assert service.profiles is sql_store
        assert service.recipes is sql_store
        assert service.outcomes is sql_store
