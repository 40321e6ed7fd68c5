"""Shared fixtures and builders for unit tests."""

from datetime import datetime, timedelta, timezone
from typing import List

import pytest

from src.models.models import (
    Outcome,
    Recipe,
    RecipeIngredient,
    SuccessHistory,
    UserCookingProfile,
)
from src.stores.memory import InMemoryStore
from src.utils.config import Config


BASE_TIME = datetime(2024, 6, 1, 18, 0, tzinfo=timezone.utc)


def make_profile(**overrides) -> UserCookingProfile:
    data = {
        "id": "user-1",
        "skill_level": 5,
        "cooking_experience_years": 4,
        "preferred_cooking_time": 45,
        "equipment_available": ["oven", "stovetop"],
        "success_history": SuccessHistory(attempts=10, successes=7, failures=2),
    }
    data.update(overrides)
    return UserCookingProfile(**data)


def make_recipe(ingredient_count: int = 6, instruction_count: int = 4, **overrides) -> Recipe:
    data = {
        "id": "recipe-1",
        "title": "Weeknight Pasta",
        "difficulty_level": "medium",
        "prep_time_minutes": 10,
        "cook_time_minutes": 20,
        "ingredients": [RecipeIngredient(name=f"ingredient {i}") for i in range(ingredient_count)],
        "instructions": [f"Step {i}: stir the pot" for i in range(instruction_count)],
        "tags": ["pasta", "weeknight"],
    }
    data.update(overrides)
    return Recipe(**data)


def make_outcome(actual: str = "success", minutes_ago: int = 0, **overrides) -> Outcome:
    data = {
        "user_id": "user-1",
        "recipe_id": "recipe-9",
        "actual_outcome": actual,
        "predicted_success_score": 0.6,
        "created_at": BASE_TIME - timedelta(minutes=minutes_ago),
    }
    data.update(overrides)
    return Outcome(**data)


def make_history(outcomes: List[str], recipe_id: str = "recipe-9", spacing_days: int = 1) -> List[Outcome]:
    """Newest first: outcomes[0] is the most recent attempt."""
    return [
        make_outcome(actual, minutes_ago=i * spacing_days * 1440, recipe_id=recipe_id)
        for i, actual in enumerate(outcomes)
    ]


@pytest.fixture
def profile() -> UserCookingProfile:
    return make_profile()


@pytest.fixture
def recipe() -> Recipe:
    return make_recipe()


@pytest.fixture
def store(profile, recipe) -> InMemoryStore:
    return InMemoryStore(profiles=[profile], recipes=[recipe])


@pytest.fixture
def settings(monkeypatch) -> Config:
    """Config built from defaults, independent of the developer's .env."""
    for key in (
        "HISTORY_LIMIT",
        "METRICS_WINDOW",
        "RECENT_ACCURACY_WINDOW",
        "BASE_CONFIDENCE",
        "MAX_KEY_FACTORS",
        "MAX_RECOMMENDATIONS",
        "ENABLE_ALTERNATIVES",
        "ALTERNATIVES_THRESHOLD",
        "MAX_ALTERNATIVES",
    ):
        monkeypatch.delenv(key, raising=False)
    return Config()
