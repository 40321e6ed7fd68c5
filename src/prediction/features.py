"""Feature extraction for cooking success prediction.

Turns a (profile, recipe, history, context) tuple into a fixed-shape
FeatureVector. Every feature is normalized into its documented range so the
scorer can apply a single weight table.

Core Functions:
- calculate_recipe_complexity(): Composite 0-10 difficulty score
- extract_required_equipment(): Keyword scan over instruction text
- find_dietary_conflicts(): Restriction/allergy substring rules over ingredient names
- calculate_cooking_frequency(): Recipes per week from history timestamps
- extract_features(): Builds the FeatureVector
"""

from typing import Dict, List, Optional, Sequence

from src.models.models import CookingContext, FeatureVector, Outcome, Recipe, UserCookingProfile


DIFFICULTY_LEVELS: Dict[str, int] = {"easy": 1, "medium": 2, "hard": 3}
DEFAULT_DIFFICULTY_LEVEL = 2

COMPLEXITY_BASE: Dict[str, int] = {"easy": 2, "medium": 5, "hard": 8}
DEFAULT_COMPLEXITY_BASE = 4

# Difficulty (1-5) a user is expected to experience on a recipe of each level
EXPECTED_DIFFICULTY: Dict[str, int] = {"easy": 2, "medium": 3, "hard": 4}

TIME_OF_DAY: Dict[str, int] = {"morning": 1, "afternoon": 2, "evening": 3, "night": 3}
DEFAULT_TIME_OF_DAY = 2

EQUIPMENT_KEYWORDS: Dict[str, List[str]] = {
    "oven": ["oven", "bake", "roast"],
    "stovetop": ["stovetop", "burner", "sauté", "saute", "boil"],
    "grill": ["grill"],
    "blender": ["blend"],
    "mixer": ["mix", "whip"],
    "thermometer": ["temperature", "thermometer"],
}

DIETARY_CONFLICTS: Dict[str, List[str]] = {
    "dairy_free": ["milk", "cheese", "butter", "cream", "yogurt"],
    "gluten_free": ["flour", "bread", "pasta", "wheat", "barley"],
    "vegetarian": ["meat", "fish", "chicken", "beef", "pork"],
    "vegan": ["milk", "cheese", "butter", "cream", "egg", "honey", "meat", "fish"],
    "nut_free": ["almond", "walnut", "peanut", "cashew", "pistachio"],
}

NEW_USER_SUCCESS_RATE = 0.5
RECENT_WINDOW = 10
FREQUENCY_WINDOW = 14


def _clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def _success_rate(outcomes: Sequence[Outcome]) -> Optional[float]:
    if not outcomes:
        return None
    return sum(1 for o in outcomes if o.actual_outcome == "success") / len(outcomes)


def calculate_recipe_complexity(recipe: Recipe) -> int:
    """Score recipe complexity on a 0-10 scale.

    Base by difficulty (easy 2, medium 5, hard 8, anything else 4), plus
    bonuses for long ingredient lists, long instruction lists and long
    total time, capped at 10.
    """
    complexity = COMPLEXITY_BASE.get(recipe.difficulty_level, DEFAULT_COMPLEXITY_BASE)

    ingredient_count = len(recipe.ingredients)
    if ingredient_count > 15:
        complexity += 2
    elif ingredient_count > 10:
        complexity += 1

    instruction_count = len(recipe.instructions)
    if instruction_count > 12:
        complexity += 2
    elif instruction_count > 8:
        complexity += 1

    total_time = recipe.active_time_minutes
    if total_time > 120:
        complexity += 2
    elif total_time > 60:
        complexity += 1

    return min(10, complexity)


def extract_required_equipment(recipe: Recipe) -> List[str]:
    """Infer the equipment a recipe needs from keywords in its instructions."""
    instructions_text = " ".join(recipe.instructions).lower()
    return [
        equipment
        for equipment, keywords in EQUIPMENT_KEYWORDS.items()
        if any(keyword in instructions_text for keyword in keywords)
    ]


def _normalize_restriction(restriction: str) -> str:
    return restriction.strip().lower().replace("-", "_").replace(" ", "_")


def ingredient_conflicts_with_restriction(ingredient: str, restriction: str) -> bool:
    """Check one lower-cased ingredient name against one restriction or allergy.

    Known restrictions use the DIETARY_CONFLICTS table; anything else (e.g. an
    allergy such as "shellfish") matches ingredients containing its own name.
    """
    key = _normalize_restriction(restriction)
    if not key:
        return False
    forbidden = DIETARY_CONFLICTS.get(key, [restriction.strip().lower()])
    return any(term in ingredient for term in forbidden)


def find_dietary_conflicts(recipe: Recipe, profile: UserCookingProfile) -> List[str]:
    """Return the distinct ingredient names that violate the user's restrictions or allergies."""
    restrictions = [*profile.dietary_restrictions, *profile.allergies]
    conflicts: List[str] = []
    for ingredient in recipe.ingredients:
        name = ingredient.name.lower()
        if ingredient.name not in conflicts and any(
            ingredient_conflicts_with_restriction(name, restriction) for restriction in restrictions
        ):
            conflicts.append(ingredient.name)
    return conflicts


def is_similar_outcome(recipe: Recipe, outcome: Outcome) -> bool:
    """Whether a past attempt on another recipe felt about as hard as this recipe should."""
    if outcome.recipe_id == recipe.id:
        return False
    expected = EXPECTED_DIFFICULTY.get(recipe.difficulty_level, EXPECTED_DIFFICULTY["medium"])
    return abs(outcome.difficulty_experienced - expected) <= 1


def calculate_cooking_frequency(history: Sequence[Outcome]) -> float:
    """Estimate recipes cooked per week from the newest-first history (minimum 1)."""
    if len(history) < 2:
        return 1.0
    recent = history[:FREQUENCY_WINDOW]
    span_days = abs((recent[0].created_at - recent[-1].created_at).total_seconds()) / 86400
    return max(1.0, len(recent) / max(1.0, span_days / 7))


def encode_time_of_day(time_of_day: Optional[str]) -> float:
    if not time_of_day:
        return 0.5
    return TIME_OF_DAY.get(time_of_day.strip().lower(), DEFAULT_TIME_OF_DAY) / 3


def extract_features(
    profile: UserCookingProfile,
    recipe: Recipe,
    history: Sequence[Outcome],
    context: Optional[CookingContext] = None,
) -> FeatureVector:
    """Build the normalized feature vector for one user/recipe pair.

    Args:
        profile: Parsed user cooking profile.
        recipe: Parsed recipe.
        history: Past outcomes for the user (at most 50), any order.
        context: Optional request-scoped cooking context.

    Returns:
        FeatureVector with every field inside its documented range.
    """
    context = context or CookingContext()
    ordered = sorted(history, key=lambda o: o.created_at, reverse=True)

    attempts = profile.success_history.attempts
    user_success_rate = (
        _clamp(profile.success_history.successes / attempts, 0.0, 1.0) if attempts > 0 else NEW_USER_SUCCESS_RATE
    )

    difficulty_num = DIFFICULTY_LEVELS.get(recipe.difficulty_level, DEFAULT_DIFFICULTY_LEVEL)
    skill_gap = (profile.skill_level - difficulty_num * 3) / 5

    required_equipment = extract_required_equipment(recipe)
    available_equipment = {item.strip().lower() for item in profile.equipment_available}
    equipment_match = (
        sum(1 for item in required_equipment if item in available_equipment) / len(required_equipment)
        if required_equipment
        else 1.0
    )

    conflicts = find_dietary_conflicts(recipe, profile)
    dietary_match = 1.0 - len(conflicts) / max(1, len(recipe.ingredients))

    similar_rate = _success_rate([o for o in ordered if is_similar_outcome(recipe, o)])
    recent_rate = _success_rate(ordered[:RECENT_WINDOW])

    total_time = recipe.active_time_minutes
    available_time = (
        context.available_time if context.available_time is not None else profile.preferred_cooking_time
    )
    stress_level = context.stress_level if context.stress_level is not None else 3

    return FeatureVector(
        user_skill_level=profile.skill_level / 10,
        user_experience=min(1.0, profile.cooking_experience_years / 20),
        user_success_rate=user_success_rate,
        recipe_complexity=calculate_recipe_complexity(recipe) / 10,
        recipe_total_time=min(1.0, total_time / 180),
        recipe_ingredient_count=min(1.0, len(recipe.ingredients) / 20),
        recipe_instruction_count=min(1.0, len(recipe.instructions) / 15),
        recipe_difficulty=difficulty_num / 3,
        skill_gap=_clamp(skill_gap, -1.0, 1.0),
        time_constraint=min(2.0, available_time / max(1.0, total_time)),
        equipment_match=equipment_match,
        dietary_match=dietary_match,
        experience_match=similar_rate if similar_rate is not None else user_success_rate,
        time_of_day=encode_time_of_day(context.time_of_day),
        stress_level=stress_level / 5,
        cooking_frequency=min(2.0, calculate_cooking_frequency(ordered) / 7),
        recent_performance=recent_rate if recent_rate is not None else user_success_rate,
    )
