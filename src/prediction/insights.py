"""Risk factors, recommendations and summary insights for a prediction.

Two independent rule sets read the same feature vector:
- Risk factors: direct feature thresholds with fixed wording.
- Recommendations: derived from the scorer's negatively-contributing factors.
A risk factor does not imply a recommendation and vice versa.
"""

from typing import Dict, List

from src.models.models import FeatureVector
from src.prediction.scoring import ScoringResult


NEGATIVE_IMPACT_THRESHOLD = -0.05
DEFAULT_MAX_RECOMMENDATIONS = 5

SKILL_GAP_RISK = "Recipe difficulty significantly exceeds current skill level"
EQUIPMENT_RISK = "Missing essential cooking equipment"
TIME_RISK = "Limited time available for recipe completion"
DIETARY_RISK = "Recipe contains ingredients that conflict with dietary restrictions"
RECENT_PERFORMANCE_RISK = "Recent cooking attempts have been challenging"

LOW_SCORE_RECOMMENDATION = "Consider starting with a simpler recipe to build confidence"
FACTOR_RECOMMENDATIONS: Dict[str, str] = {
    "skill_gap": "This recipe may be challenging for your current skill level; a simpler recipe could be a better start",
    "equipment_match": "Consider equipment alternatives or acquire missing tools",
    "time_constraint": "Allow extra time or prep ingredients in advance",
    "dietary_match": "Review ingredients for dietary conflicts and substitutions",
    "recipe_complexity": "Take your time and read all instructions before starting",
}
RECENT_CHALLENGES_RECOMMENDATION = "Recent cooking challenges suggest taking a simpler approach"
TUTORIAL_RECOMMENDATION = "Consider watching tutorial videos before cooking"


def identify_risk_factors(features: FeatureVector) -> List[str]:
    """Apply the fixed threshold rules to the feature vector."""
    risks = []
    if features.skill_gap < -0.3:
        risks.append(SKILL_GAP_RISK)
    if features.equipment_match < 0.7:
        risks.append(EQUIPMENT_RISK)
    if features.time_constraint < 0.8:
        risks.append(TIME_RISK)
    if features.dietary_match < 0.9:
        risks.append(DIETARY_RISK)
    if features.recent_performance < 0.4:
        risks.append(RECENT_PERFORMANCE_RISK)
    return risks


def generate_recommendations(
    features: FeatureVector,
    scoring: ScoringResult,
    max_recommendations: int = DEFAULT_MAX_RECOMMENDATIONS,
) -> List[str]:
    """Build recommendations from negative contributions, most harmful first.

    A low overall score adds an opener; weak recent performance and low skill
    add general advice after the factor-specific items. Duplicates are dropped
    and the list is capped at max_recommendations.
    """
    recommendations: List[str] = []

    if scoring.success_probability < 0.5:
        recommendations.append(LOW_SCORE_RECOMMENDATION)

    for contribution in scoring.contributions:
        if contribution.impact < NEGATIVE_IMPACT_THRESHOLD and contribution.factor in FACTOR_RECOMMENDATIONS:
            recommendations.append(FACTOR_RECOMMENDATIONS[contribution.factor])

    if features.recent_performance < 0.6:
        recommendations.append(RECENT_CHALLENGES_RECOMMENDATION)
    if features.user_skill_level < 0.3:
        recommendations.append(TUTORIAL_RECOMMENDATION)

    return list(dict.fromkeys(recommendations))[:max_recommendations]


def generate_insights(scoring: ScoringResult) -> List[str]:
    """Summarize the prediction in three sentences: chance, key strength, main challenge."""
    strength = next((f for f in scoring.contributions if f.impact > 0), None)
    challenge = next((f for f in scoring.contributions if f.impact < 0), None)
    return [
        f"Based on your profile, you have a {round(scoring.success_probability * 100)}% chance of success",
        f"Key strength: {strength.description if strength else 'None identified'}",
        f"Main challenge: {challenge.description if challenge else 'None identified'}",
    ]
