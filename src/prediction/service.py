"""Success prediction service: the public entry point of the predictor.

Wires the pipeline extract -> score -> explain behind three operations:
- predict_success(): concurrent loads, feature extraction, scoring, insights
- record_outcome_and_update(): replayed extraction, training sample, update hook
- get_model_metrics(): classifier statistics over recent persisted outcomes

initialize_prediction_service() builds a service backed by the SQL store.

All collaborators are constructor-injected so each can be faked in tests.
"""

import asyncio
from typing import Any, List, Mapping, Optional, Union

from src.models.models import (
    CookingContext,
    MetricsReport,
    Outcome,
    Prediction,
    Recipe,
    TrainingSample,
)
from src.models.records import parse_context, parse_outcomes, parse_profile, parse_recipe
from src.prediction.features import extract_features
from src.prediction.insights import generate_insights, generate_recommendations, identify_risk_factors
from src.prediction.metrics import evaluate_outcomes
from src.prediction.outcomes import OutcomeRecorder, UpdateStrategy
from src.prediction.scoring import score_features
from src.stores.base import AlternativeRecipeFinder, OutcomeStore, ProfileLoader, RecipeLoader
from src.stores.sql import SqlStore
from src.utils.config import Config, config
from src.utils.errors import NotFoundError
from src.utils.logger import logger


class SuccessPredictionService:
    """Predict cooking success, record outcomes, and report model metrics."""

    def __init__(
        self,
        profiles: ProfileLoader,
        recipes: RecipeLoader,
        outcomes: OutcomeStore,
        update_strategy: Optional[UpdateStrategy] = None,
        alternatives: Optional[AlternativeRecipeFinder] = None,
        settings: Optional[Config] = None,
    ) -> None:
        """Initialize the service with its collaborators.

        Args:
            profiles: Loader for user cooking profiles.
            recipes: Loader for recipes.
            outcomes: Outcome history reader and training sample writer.
            update_strategy: Model update hook (default: log-only).
            alternatives: Optional lookup for easier alternative recipes.
            settings: Configuration (default: module-level config).
        """
        self.profiles = profiles
        self.recipes = recipes
        self.outcomes = outcomes
        self.alternatives = alternatives
        self.settings = settings or config
        self.recorder = OutcomeRecorder(outcomes, update_strategy)

    async def _load_inputs(self, user_id: str, recipe_id: str):
        """Load profile, recipe and history concurrently.

        Profile and recipe failures are fatal (NotFoundError); a failed history
        read degrades to an empty history.
        """
        profile_row, recipe_row, history_rows = await asyncio.gather(
            self.profiles.get_user_profile(user_id),
            self.recipes.get_recipe(recipe_id),
            self.outcomes.get_outcome_history(user_id, self.settings.HISTORY_LIMIT),
            return_exceptions=True,
        )

        if isinstance(profile_row, BaseException):
            logger.error(f"Profile lookup failed for user {user_id}: {profile_row}")
            raise NotFoundError("User profile", user_id) from profile_row
        if profile_row is None:
            raise NotFoundError("User profile", user_id)

        if isinstance(recipe_row, BaseException):
            logger.error(f"Recipe lookup failed for recipe {recipe_id}: {recipe_row}")
            raise NotFoundError("Recipe", recipe_id) from recipe_row
        if recipe_row is None:
            raise NotFoundError("Recipe", recipe_id)

        if isinstance(history_rows, BaseException):
            logger.warning(f"History lookup failed for user {user_id}, using default priors: {history_rows}")
            history_rows = []

        history = parse_outcomes(history_rows)[: self.settings.HISTORY_LIMIT]
        return parse_profile(profile_row, user_id), parse_recipe(recipe_row, recipe_id), history

    async def _find_alternatives(self, user_id: str, recipe: Recipe, score: float) -> List[str]:
        if (
            self.alternatives is None
            or not self.settings.ENABLE_ALTERNATIVES
            or score >= self.settings.ALTERNATIVES_THRESHOLD
        ):
            return []
        try:
            found = await self.alternatives.find_alternative_recipes(user_id, recipe, self.settings.MAX_ALTERNATIVES)
        except Exception as e:
            logger.warning(f"Alternative recipe lookup failed for recipe {recipe.id}: {e}")
            return []
        return [str(recipe_id) for recipe_id in found if str(recipe_id) != recipe.id][: self.settings.MAX_ALTERNATIVES]

    async def predict_success(
        self,
        user_id: str,
        recipe_id: str,
        context: Union[CookingContext, Mapping[str, Any], None] = None,
    ) -> Prediction:
        """Predict how likely a user is to cook a recipe successfully.

        Args:
            user_id: User whose profile and history are used.
            recipe_id: Recipe to evaluate.
            context: Optional cooking context (time of day, stress, available time).

        Returns:
            Prediction with score, interval, key factors, risks and recommendations.

        Raises:
            NotFoundError: If the profile or recipe does not exist.
        """
        profile, recipe, history = await self._load_inputs(user_id, recipe_id)

        features = extract_features(profile, recipe, history, parse_context(context))
        scoring = score_features(
            features,
            confidence=self.settings.BASE_CONFIDENCE,
            max_key_factors=self.settings.MAX_KEY_FACTORS,
        )

        prediction = Prediction(
            success_score=scoring.success_probability,
            confidence_interval=scoring.confidence_interval,
            key_factors=scoring.key_factors,
            risk_level=scoring.risk_level,
            risk_factors=identify_risk_factors(features),
            recommendations=generate_recommendations(features, scoring, self.settings.MAX_RECOMMENDATIONS),
            insights=generate_insights(scoring),
            alternative_recipes=await self._find_alternatives(user_id, recipe, scoring.success_probability),
        )

        logger.info(
            "Prediction complete",
            extra={
                "user_id": user_id,
                "recipe_id": recipe_id,
                "success_score": round(prediction.success_score, 3),
                "risk_level": prediction.risk_level,
            },
        )
        return prediction

    async def record_outcome_and_update(
        self,
        user_id: str,
        recipe_id: str,
        outcome: Union[Outcome, Mapping[str, Any]],
    ) -> TrainingSample:
        """Record a realized outcome as a training sample and run the update hook.

        Features are replayed with the outcome's own cooking context against the
        current profile, recipe and history. The outcome itself is excluded from
        the history so the sample reflects what was known before cooking.

        Args:
            user_id: User who cooked.
            recipe_id: Recipe that was cooked.
            outcome: The realized outcome.

        Returns:
            The persisted TrainingSample.

        Raises:
            NotFoundError: If the profile or recipe does not exist.
            PersistenceError: If the sample could not be stored.
            ValueError: If a raw outcome mapping cannot be interpreted.
        """
        if not isinstance(outcome, Outcome):
            parsed = parse_outcomes([{"user_id": user_id, "recipe_id": recipe_id, **dict(outcome)}])
            if not parsed:
                raise ValueError(f"Unrecognized outcome record: {outcome!r}")
            outcome = parsed[0]

        profile, recipe, history = await self._load_inputs(user_id, recipe_id)
        history = [past for past in history if past.id != outcome.id]

        features = extract_features(profile, recipe, history, outcome.cooking_context)
        sample = await self.recorder.record(features, outcome)

        logger.info(
            f"Outcome recorded with training label {sample.label}",
            extra={"user_id": user_id, "recipe_id": recipe_id, "actual_outcome": outcome.actual_outcome},
        )
        return sample

    async def get_model_metrics(self, window: Optional[int] = None) -> MetricsReport:
        """Evaluate the predictor over the most recent persisted outcomes.

        Args:
            window: Number of most recent outcomes to evaluate (default: METRICS_WINDOW).

        Returns:
            MetricsReport; all zeros when no outcome carries a predicted score.

        Raises:
            ValueError: If window is below 1.
        """
        limit = window if window is not None else self.settings.METRICS_WINDOW
        if limit < 1:
            raise ValueError(f"Metrics window must be at least 1, got {limit}")
        rows = await self.outcomes.get_outcomes_window(limit)
        report = evaluate_outcomes(parse_outcomes(rows)[:limit], self.settings.RECENT_ACCURACY_WINDOW)
        logger.info(
            f"Model metrics over {report.total_predictions} predictions: "
            f"accuracy={report.accuracy:.3f}, recent_accuracy={report.recent_accuracy:.3f}"
        )
        return report


def initialize_prediction_service(
    store: Optional[SqlStore] = None,
    update_strategy: Optional[UpdateStrategy] = None,
) -> SuccessPredictionService:
    """Factory: build a service backed by the SQL store (SQLite or PostgreSQL).

    Args:
        store: Existing SqlStore (default: new store on DATABASE_URL or the local SQLite file).
        update_strategy: Model update hook (default: log-only).

    Returns:
        SuccessPredictionService using one SqlStore for every collaborator.
    """
    logger.info("=== Initializing Success Prediction Service ===")
    store = store or SqlStore()
    service = SuccessPredictionService(
        profiles=store,
        recipes=store,
        outcomes=store,
        update_strategy=update_strategy,
        alternatives=store if config.ENABLE_ALTERNATIVES else None,
    )
    logger.info(f"✓ Update strategy: {type(service.recorder.update_strategy).__name__}")
    logger.info("=== Service initialization complete ===")
    return service
