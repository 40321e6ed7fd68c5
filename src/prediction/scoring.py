"""Weighted-feature scoring model.

A transparent linear scorer: prediction = 0.5 + sum(weight * feature), clamped
to [0.05, 0.95] so the model never claims certainty either way. Every
factor's signed contribution is kept so predictions can be explained.
"""

from typing import Dict, List, Tuple

from pydantic import BaseModel, Field

from src.models.models import FeatureVector, KeyFactor, RiskLevel


FEATURE_WEIGHTS: Dict[str, float] = {
    "user_skill_level": 0.15,
    "user_success_rate": 0.20,
    "skill_gap": 0.18,
    "equipment_match": 0.12,
    "dietary_match": 0.08,
    "time_constraint": 0.10,
    "recent_performance": 0.12,
    "recipe_complexity": -0.15,
    "experience_match": 0.10,
}

BASE_PROBABILITY = 0.5
MIN_PROBABILITY = 0.05
MAX_PROBABILITY = 0.95
DEFAULT_CONFIDENCE = 0.8
DEFAULT_MAX_KEY_FACTORS = 5

LOW_RISK_THRESHOLD = 0.7
MEDIUM_RISK_THRESHOLD = 0.4


class ScoringResult(BaseModel):
    """Scorer output. contributions holds every weighted factor ranked by |impact|."""

    success_probability: float
    confidence_interval: Tuple[float, float]
    contributions: List[KeyFactor] = Field(default_factory=list)
    key_factors: List[KeyFactor] = Field(default_factory=list)
    risk_level: RiskLevel


def risk_level_for(score: float) -> RiskLevel:
    """Map a success score to its risk level (>= 0.7 low, >= 0.4 medium, else high)."""
    if score >= LOW_RISK_THRESHOLD:
        return "low"
    if score >= MEDIUM_RISK_THRESHOLD:
        return "medium"
    return "high"


def confidence_interval_for(probability: float, confidence: float = DEFAULT_CONFIDENCE) -> Tuple[float, float]:
    margin = (1 - confidence) * 0.2
    return (max(0.0, probability - margin), min(1.0, probability + margin))


def describe_factor(factor: str, value: float, impact: float) -> str:
    """Human-readable explanation of one factor's contribution."""
    percent = round(value * 100)
    if factor == "user_skill_level":
        return f"Your skill level ({round(value * 10)}/10) {'helps' if impact > 0 else 'challenges'} with this recipe"
    if factor == "user_success_rate":
        return f"Your {percent}% success rate {'boosts' if impact > 0 else 'lowers'} confidence"
    if factor == "skill_gap":
        return f"Recipe difficulty {'matches' if impact > 0 else 'exceeds'} your skill level"
    if factor == "equipment_match":
        return f"You have {percent}% of required equipment"
    if factor == "dietary_match":
        return f"Recipe {percent}% matches your dietary preferences"
    if factor == "time_constraint":
        return f"Time availability {'adequate' if impact > 0 else 'tight'} for this recipe"
    if factor == "recent_performance":
        return f"Recent {percent}% success rate {'positive' if impact > 0 else 'concerning'}"
    if factor == "recipe_complexity":
        return f"Recipe complexity {'high' if impact < 0 else 'manageable'}"
    if factor == "experience_match":
        return f"{percent}% success on similar recipes"
    return f"{factor}: {percent}%"


def score_features(
    features: FeatureVector,
    confidence: float = DEFAULT_CONFIDENCE,
    max_key_factors: int = DEFAULT_MAX_KEY_FACTORS,
) -> ScoringResult:
    """Score a feature vector.

    Args:
        features: Normalized feature vector.
        confidence: Fixed model confidence used to size the interval.
        max_key_factors: Number of top-ranked factors exposed as key factors.

    Returns:
        ScoringResult with the clamped probability, interval, ranked factors and risk level.
    """
    probability = BASE_PROBABILITY
    contributions: List[KeyFactor] = []

    for factor, weight in FEATURE_WEIGHTS.items():
        value = getattr(features, factor)
        impact = weight * value
        probability += impact
        contributions.append(
            KeyFactor(factor=factor, impact=impact, description=describe_factor(factor, value, impact))
        )

    probability = max(MIN_PROBABILITY, min(MAX_PROBABILITY, probability))
    # sorted() is stable: ties keep weight-table order, so output is deterministic
    ranked = sorted(contributions, key=lambda c: abs(c.impact), reverse=True)

    return ScoringResult(
        success_probability=probability,
        confidence_interval=confidence_interval_for(probability, confidence),
        contributions=ranked,
        key_factors=ranked[:max_key_factors],
        risk_level=risk_level_for(probability),
    )
