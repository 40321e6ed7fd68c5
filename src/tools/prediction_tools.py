"""Agno tools exposing the prediction service to a recipe agent.

The agent can ask how likely a user is to succeed with a recipe before
recommending it, and can check how accurate those predictions have been.

Core Functions (plain async, unit-tested directly):
- predict_success_tool(): Runs a prediction and returns a JSON-ready dict
- model_metrics_tool(): Returns the metrics report as a dict

get_prediction_tools() wraps both with agno's @tool decorator, bound to a
service instance, for registration on an Agent's tools list.
"""

from typing import Any, Dict, List, Optional

from agno.tools import tool

from src.prediction.service import SuccessPredictionService
from src.utils.errors import NotFoundError
from src.utils.logger import logger


async def predict_success_tool(
    service: SuccessPredictionService,
    user_id: str,
    recipe_id: str,
    available_time: Optional[float] = None,
    stress_level: Optional[int] = None,
    time_of_day: Optional[str] = None,
) -> Dict[str, Any]:
    """Run a prediction and return it as a dict.

    Raises:
        ValueError: If the user profile or recipe does not exist (message is shown to the agent).
    """
    context = {
        "available_time": available_time,
        "stress_level": stress_level,
        "time_of_day": time_of_day,
    }
    try:
        prediction = await service.predict_success(
            user_id, recipe_id, {key: value for key, value in context.items() if value is not None}
        )
    except NotFoundError as e:
        logger.warning(f"Prediction tool lookup failed: {e}")
        raise ValueError(str(e)) from e
    return prediction.model_dump()


async def model_metrics_tool(service: SuccessPredictionService, window: Optional[int] = None) -> Dict[str, Any]:
    report = await service.get_model_metrics(window)
    return report.model_dump()


def get_prediction_tools(service: SuccessPredictionService) -> List[Any]:
    """Build agno tools bound to a service instance.

    Args:
        service: Configured prediction service.

    Returns:
        List of agno tools: predict_cooking_success, get_prediction_metrics.
    """

    @tool
    async def predict_cooking_success(
        user_id: str,
        recipe_id: str,
        available_time: Optional[float] = None,
        stress_level: Optional[int] = None,
        time_of_day: Optional[str] = None,
    ) -> Dict[str, Any]:
        """Predict how likely a user is to cook a recipe successfully.

        Call this tool before recommending a recipe to check whether it suits the
        user's skill, equipment, diet and available time. Low scores come with
        risk factors, recommendations and easier alternative recipe ids.

        Args:
            user_id: The user's id.
            recipe_id: The recipe's id.
            available_time: Minutes the user has for cooking (optional).
            stress_level: User stress from 1 (relaxed) to 5 (very stressed) (optional).
            time_of_day: "morning", "afternoon", "evening" or "night" (optional).

        Returns:
            Dict with success_score (0-1), confidence_interval, risk_level,
            key_factors, risk_factors, recommendations, insights and alternative_recipes.
        """
        return await predict_success_tool(service, user_id, recipe_id, available_time, stress_level, time_of_day)

    @tool
    async def get_prediction_metrics(window: Optional[int] = None) -> Dict[str, Any]:
        """Report how accurate past success predictions have been.

        Args:
            window: Number of most recent recorded outcomes to evaluate (optional, default 1000).

        Returns:
            Dict with accuracy, precision, recall, f1_score, total_predictions and recent_accuracy.
        """
        return await model_metrics_tool(service, window)

    return [predict_cooking_success, get_prediction_metrics]
