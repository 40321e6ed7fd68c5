"""Collaborator interfaces consumed by the prediction service.

Stores may return typed models or raw row mappings; the service passes every
row through the parse boundary in src/models/records.py. Returning None from
a profile or recipe lookup means "not found".
"""

from abc import ABC, abstractmethod
from typing import Any, List, Mapping, Optional, Sequence, Union

from src.models.models import Outcome, Recipe, TrainingSample, UserCookingProfile


ProfileRow = Union[UserCookingProfile, Mapping[str, Any]]
RecipeRow = Union[Recipe, Mapping[str, Any]]
OutcomeRow = Union[Outcome, Mapping[str, Any]]


class ProfileLoader(ABC):
    @abstractmethod
    async def get_user_profile(self, user_id: str) -> Optional[ProfileRow]:
        pass


class RecipeLoader(ABC):
    @abstractmethod
    async def get_recipe(self, recipe_id: str) -> Optional[RecipeRow]:
        pass


class OutcomeStore(ABC):
    @abstractmethod
    async def get_outcome_history(self, user_id: str, limit: int = 50) -> Sequence[OutcomeRow]:
        """Past outcomes for a user, newest first."""

    @abstractmethod
    async def persist_training_sample(self, sample: TrainingSample) -> None:
        """Write one outcome with its feature vector and label. Raises on failure."""

    @abstractmethod
    async def get_outcomes_window(self, limit: int = 1000) -> Sequence[OutcomeRow]:
        """Most recent outcomes across all users, newest first."""


class AlternativeRecipeFinder(ABC):
    @abstractmethod
    async def find_alternative_recipes(self, user_id: str, recipe: Recipe, limit: int = 3) -> List[str]:
        pass


DIFFICULTY_RANK = {"easy": 1, "medium": 2, "hard": 3}


def select_alternatives(recipe: Recipe, candidates: Sequence[Recipe], limit: int = 3) -> List[str]:
    """Pick easier-or-equal recipes sharing at least one tag with the given recipe.

    Candidates are ranked by difficulty, then by number of shared tags, then by
    active time, so the simplest related recipes come first.
    """
    tags = {tag.lower() for tag in recipe.tags}
    if not tags or limit <= 0:
        return []
    max_rank = DIFFICULTY_RANK.get(recipe.difficulty_level, 2)

    scored = []
    for candidate in candidates:
        if candidate.id == recipe.id:
            continue
        rank = DIFFICULTY_RANK.get(candidate.difficulty_level, 2)
        shared = tags & {tag.lower() for tag in candidate.tags}
        if shared and rank <= max_rank:
            scored.append((rank, -len(shared), candidate.active_time_minutes, candidate.id))

    return [candidate_id for *_, candidate_id in sorted(scored)[:limit]]
