"""In-memory implementation of every store interface.

Used by tests, the query CLI demo data, and any deployment that supplies its
own records at startup. Records are held as typed models; writes replace the
whole outcome row keyed by outcome id.
"""

from typing import Dict, Iterable, List, Optional

from src.models.models import Outcome, Recipe, TrainingSample, UserCookingProfile
from src.stores.base import AlternativeRecipeFinder, OutcomeStore, ProfileLoader, RecipeLoader, select_alternatives


class InMemoryStore(ProfileLoader, RecipeLoader, OutcomeStore, AlternativeRecipeFinder):
    """Profiles, recipes, outcomes and training samples kept in dictionaries."""

    def __init__(
        self,
        profiles: Optional[Iterable[UserCookingProfile]] = None,
        recipes: Optional[Iterable[Recipe]] = None,
        outcomes: Optional[Iterable[Outcome]] = None,
    ) -> None:
        self.profiles: Dict[str, UserCookingProfile] = {p.id: p for p in profiles or []}
        self.recipes: Dict[str, Recipe] = {r.id: r for r in recipes or []}
        self.outcomes: Dict[str, Outcome] = {o.id: o for o in outcomes or []}
        self.training_samples: Dict[str, TrainingSample] = {}

    def add_profile(self, profile: UserCookingProfile) -> None:
        self.profiles[profile.id] = profile

    def add_recipe(self, recipe: Recipe) -> None:
        self.recipes[recipe.id] = recipe

    def add_outcome(self, outcome: Outcome) -> None:
        self.outcomes[outcome.id] = outcome

    def _newest_first(self, outcomes: Iterable[Outcome]) -> List[Outcome]:
        return sorted(outcomes, key=lambda o: o.created_at, reverse=True)

    async def get_user_profile(self, user_id: str) -> Optional[UserCookingProfile]:
        return self.profiles.get(user_id)

    async def get_recipe(self, recipe_id: str) -> Optional[Recipe]:
        return self.recipes.get(recipe_id)

    async def get_outcome_history(self, user_id: str, limit: int = 50) -> List[Outcome]:
        return self._newest_first(o for o in self.outcomes.values() if o.user_id == user_id)[:limit]

    async def persist_training_sample(self, sample: TrainingSample) -> None:
        self.outcomes[sample.outcome.id] = sample.outcome
        self.training_samples[sample.outcome.id] = sample

    async def get_outcomes_window(self, limit: int = 1000) -> List[Outcome]:
        return self._newest_first(self.outcomes.values())[:limit]

    async def find_alternative_recipes(self, user_id: str, recipe: Recipe, limit: int = 3) -> List[str]:
        return select_alternatives(recipe, list(self.recipes.values()), limit)
