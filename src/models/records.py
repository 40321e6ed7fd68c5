"""Parse-with-defaults boundary for records coming from external stores.

Upstream rows (database JSON, API payloads) are weakly typed: skill levels may
be null, lists may be strings, timestamps may be missing. Every function here
accepts either an already-typed model (returned unchanged) or a raw mapping,
and always produces a fully-populated typed model. Nothing in this module
raises on malformed optional fields; the rest of the pipeline stays strictly
typed.

Defaults:
- skill_level: 5 (mid-scale), clamped to 1-10
- cooking_experience_years: 0
- preferred_cooking_time: 30 minutes
- list fields: [] when not a list/tuple/set
- success_history: zeros when not a mapping
- stress_level: clamped to 1-5, dropped when not numeric
- created_at: Unix epoch when missing or unparseable
- numbers: NaN and infinities are treated as missing
"""

import math
from datetime import datetime, timezone
from typing import Any, Iterable, List, Mapping, Optional, Union

from src.models.models import (
    OUTCOME_TYPES,
    CookingContext,
    IngredientPreferences,
    Outcome,
    Recipe,
    RecipeIngredient,
    SuccessHistory,
    UserCookingProfile,
)
from src.utils.logger import logger

EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)

DEFAULT_SKILL_LEVEL = 5
DEFAULT_PREFERRED_COOKING_TIME = 30.0


def _as_float(value: Any, default: Optional[float], minimum: Optional[float] = 0.0) -> Optional[float]:
    """Coerce to a finite float, falling back to default for None, bools, and unparseable values."""
    if value is None or isinstance(value, bool):
        return default
    try:
        result = float(value)
    except (TypeError, ValueError):
        return default
    if not math.isfinite(result):
        return default
    if minimum is not None and result < minimum:
        return minimum
    return result


def _as_int(value: Any, default: Optional[int], low: int, high: int) -> Optional[int]:
    result = _as_float(value, None, minimum=None)
    if result is None:
        return default
    return max(low, min(high, int(round(result))))


def _as_str_list(value: Any) -> List[str]:
    if not isinstance(value, (list, tuple, set, frozenset)):
        return []
    return [str(item).strip() for item in value if item is not None and str(item).strip()]


def _as_mapping(value: Any) -> Mapping[str, Any]:
    return value if isinstance(value, Mapping) else {}


def _as_datetime(value: Any) -> datetime:
    """Parse datetimes, ISO-8601 strings, and Unix timestamps. Naive values are taken as UTC."""
    parsed: Optional[datetime] = None
    if isinstance(value, datetime):
        parsed = value
    elif isinstance(value, str) and value.strip():
        try:
            parsed = datetime.fromisoformat(value.strip().replace("Z", "+00:00"))
        except ValueError:
            parsed = None
    elif isinstance(value, (int, float)) and not isinstance(value, bool):
        try:
            parsed = datetime.fromtimestamp(value, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            parsed = None

    if parsed is None:
        return EPOCH
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _parse_ingredients(value: Any) -> List[RecipeIngredient]:
    ingredients = []
    if not isinstance(value, (list, tuple)):
        return ingredients
    for item in value:
        if isinstance(item, RecipeIngredient):
            ingredients.append(item)
        elif isinstance(item, Mapping):
            name = str(item.get("name") or "").strip()
            if name:
                ingredients.append(
                    RecipeIngredient(
                        name=name,
                        amount=_as_float(item.get("amount"), None, minimum=None),
                        unit=str(item["unit"]) if item.get("unit") is not None else None,
                    )
                )
        elif isinstance(item, str) and item.strip():
            ingredients.append(RecipeIngredient(name=item.strip()))
    return ingredients


def parse_context(raw: Union[CookingContext, Mapping[str, Any], None]) -> CookingContext:
    """Build a CookingContext, dropping values that cannot be interpreted."""
    if isinstance(raw, CookingContext):
        return raw
    data = dict(_as_mapping(raw))
    time_of_day = data.pop("time_of_day", None)
    stress_level = data.pop("stress_level", None)
    available_time = data.pop("available_time", None)
    return CookingContext(
        time_of_day=str(time_of_day).strip() if isinstance(time_of_day, str) and time_of_day.strip() else None,
        stress_level=_as_int(stress_level, None, 1, 5),
        available_time=_as_float(available_time, None),
        **{key: value for key, value in data.items() if isinstance(key, str)},
    )


def parse_profile(raw: Union[UserCookingProfile, Mapping[str, Any]], user_id: str = "") -> UserCookingProfile:
    """Build a UserCookingProfile from a store row, substituting defaults for bad fields.

    Args:
        raw: Typed profile or raw mapping (database row).
        user_id: Identifier used when the row carries no usable id.

    Returns:
        Fully-populated UserCookingProfile.
    """
    if isinstance(raw, UserCookingProfile):
        return raw
    data = _as_mapping(raw)
    history = _as_mapping(data.get("success_history"))
    preferences = _as_mapping(data.get("ingredient_preferences"))

    return UserCookingProfile(
        id=str(data.get("id") or user_id or "unknown"),
        skill_level=_as_int(data.get("skill_level"), DEFAULT_SKILL_LEVEL, 1, 10),
        cooking_experience_years=_as_float(data.get("cooking_experience_years"), 0.0),
        preferred_cooking_time=_as_float(data.get("preferred_cooking_time"), DEFAULT_PREFERRED_COOKING_TIME),
        equipment_available=_as_str_list(data.get("equipment_available")),
        dietary_restrictions=_as_str_list(data.get("dietary_restrictions")),
        allergies=_as_str_list(data.get("allergies")),
        success_history=SuccessHistory(
            attempts=_as_int(history.get("attempts"), 0, 0, 10**9),
            successes=_as_int(history.get("successes"), 0, 0, 10**9),
            failures=_as_int(history.get("failures"), 0, 0, 10**9),
        ),
        ingredient_preferences=IngredientPreferences(
            loved=_as_str_list(preferences.get("loved")),
            disliked=_as_str_list(preferences.get("disliked")),
            never_tried=_as_str_list(preferences.get("never_tried")),
        ),
    )


def parse_recipe(raw: Union[Recipe, Mapping[str, Any]], recipe_id: str = "") -> Recipe:
    """Build a Recipe from a store row, substituting defaults for bad fields."""
    if isinstance(raw, Recipe):
        return raw
    data = _as_mapping(raw)
    difficulty = data.get("difficulty_level")

    return Recipe(
        id=str(data.get("id") or recipe_id or "unknown"),
        title=str(data.get("title") or ""),
        ingredients=_parse_ingredients(data.get("ingredients")),
        instructions=_as_str_list(data.get("instructions")),
        difficulty_level=difficulty.strip().lower() if isinstance(difficulty, str) and difficulty.strip() else "",
        prep_time_minutes=_as_float(data.get("prep_time_minutes"), 0.0),
        cook_time_minutes=_as_float(data.get("cook_time_minutes"), 0.0),
        total_time_minutes=_as_float(data.get("total_time_minutes"), None),
        tags=_as_str_list(data.get("tags")),
    )


def parse_outcome(raw: Union[Outcome, Mapping[str, Any]]) -> Optional[Outcome]:
    """Build an Outcome from a store row.

    Returns:
        The typed Outcome, or None when the row has no recognizable
        actual_outcome or lacks user/recipe ids (such rows carry no signal).
    """
    if isinstance(raw, Outcome):
        return raw
    data = _as_mapping(raw)
    actual = data.get("actual_outcome")
    user_id = data.get("user_id")
    recipe_id = data.get("recipe_id")
    if actual not in OUTCOME_TYPES or not user_id or not recipe_id:
        logger.debug(f"Skipping unusable outcome row: id={data.get('id')}, actual_outcome={actual!r}")
        return None

    predicted = _as_float(data.get("predicted_success_score"), None, minimum=None)
    if predicted is not None:
        predicted = max(0.0, min(1.0, predicted))

    fields = {
        "user_id": str(user_id),
        "recipe_id": str(recipe_id),
        "adaptation_id": str(data["adaptation_id"]) if data.get("adaptation_id") else None,
        "predicted_success_score": predicted,
        "actual_outcome": actual,
        "user_rating": _as_int(data.get("user_rating"), 3, 1, 5),
        "time_taken_minutes": _as_float(data.get("time_taken_minutes"), None),
        "difficulty_experienced": _as_int(data.get("difficulty_experienced"), 3, 1, 5),
        "issues_encountered": _as_str_list(data.get("issues_encountered")),
        "user_notes": str(data["user_notes"]) if data.get("user_notes") is not None else None,
        "cooking_context": parse_context(data.get("cooking_context")),
        "created_at": _as_datetime(data.get("created_at")),
    }
    if data.get("id"):
        fields["id"] = str(data["id"])
    return Outcome(**fields)


def parse_outcomes(rows: Optional[Iterable[Any]]) -> List[Outcome]:
    """Parse a batch of outcome rows, dropping the unusable ones."""
    if not isinstance(rows, (list, tuple)):
        return []
    outcomes = []
    for row in rows:
        outcome = parse_outcome(row)
        if outcome is not None:
            outcomes.append(outcome)
    return outcomes
