"""Data models and schemas for the cooking success prediction service.

Defines Pydantic models for the records read from external stores, the
feature vector consumed by the scorer, and the prediction / metrics responses.
All models use Pydantic v2 for strict validation and JSON serialization.
"""

from datetime import datetime, timezone
from typing import Annotated, List, Literal, Optional, Tuple
from uuid import uuid4

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


OutcomeType = Literal["success", "partial_success", "failure", "abandoned"]
RiskLevel = Literal["low", "medium", "high"]

OUTCOME_TYPES: Tuple[str, ...] = ("success", "partial_success", "failure", "abandoned")


class SuccessHistory(BaseModel):
    """Aggregate cooking attempts for a user.

    attempts >= successes + failures is not enforced: partial outcomes count
    as attempts without being either.
    """

    attempts: Annotated[int, Field(0, ge=0)]
    successes: Annotated[int, Field(0, ge=0)]
    failures: Annotated[int, Field(0, ge=0)]


class IngredientPreferences(BaseModel):
    loved: List[str] = Field(default_factory=list)
    disliked: List[str] = Field(default_factory=list)
    never_tried: List[str] = Field(default_factory=list)


class UserCookingProfile(BaseModel):
    """Cooking profile owned by the external profile store (read-only here)."""

    model_config = ConfigDict(str_strip_whitespace=True)

    id: Annotated[str, Field(min_length=1, description="User identifier")]
    skill_level: Annotated[int, Field(5, ge=1, le=10, description="Self-assessed skill level (1-10)")]
    cooking_experience_years: Annotated[float, Field(0.0, ge=0, description="Years of cooking experience")]
    preferred_cooking_time: Annotated[
        float, Field(30.0, ge=0, description="Time the user usually has for cooking, in minutes")
    ]
    equipment_available: List[str] = Field(default_factory=list)
    dietary_restrictions: List[str] = Field(default_factory=list)
    allergies: List[str] = Field(default_factory=list)
    success_history: SuccessHistory = Field(default_factory=SuccessHistory)
    ingredient_preferences: IngredientPreferences = Field(default_factory=IngredientPreferences)


class RecipeIngredient(BaseModel):
    name: Annotated[str, Field(min_length=1)]
    amount: Optional[float] = None
    unit: Optional[str] = None


class Recipe(BaseModel):
    """Recipe record owned by the external catalog (read-only here).

    difficulty_level is normally easy, medium or hard; other values are kept
    as-is and scored with the neutral defaults of the feature extractor.
    """

    model_config = ConfigDict(str_strip_whitespace=True)

    id: Annotated[str, Field(min_length=1, description="Recipe identifier")]
    title: str = ""
    ingredients: List[RecipeIngredient] = Field(default_factory=list)
    instructions: List[str] = Field(default_factory=list)
    difficulty_level: str = "medium"
    prep_time_minutes: Annotated[float, Field(0.0, ge=0)]
    cook_time_minutes: Annotated[float, Field(0.0, ge=0)]
    total_time_minutes: Annotated[Optional[float], Field(None, ge=0)]
    tags: List[str] = Field(default_factory=list)

    @property
    def active_time_minutes(self) -> float:
        """Prep plus cook time, the duration every time-based feature uses."""
        return self.prep_time_minutes + self.cook_time_minutes


class CookingContext(BaseModel):
    """Request-scoped circumstances of a cooking session. Extra keys are kept."""

    model_config = ConfigDict(extra="allow")

    time_of_day: Optional[str] = None
    stress_level: Annotated[Optional[int], Field(None, ge=1, le=5)]
    available_time: Annotated[Optional[float], Field(None, ge=0, description="Minutes available")]


class Outcome(BaseModel):
    """A realized cooking attempt. Created once by the caller, never modified."""

    model_config = ConfigDict(frozen=True)

    id: str = Field(default_factory=lambda: str(uuid4()))
    user_id: Annotated[str, Field(min_length=1)]
    recipe_id: Annotated[str, Field(min_length=1)]
    adaptation_id: Optional[str] = None
    predicted_success_score: Annotated[Optional[float], Field(None, ge=0, le=1)]
    actual_outcome: OutcomeType
    user_rating: Annotated[int, Field(3, ge=1, le=5)]
    time_taken_minutes: Annotated[Optional[float], Field(None, ge=0)]
    difficulty_experienced: Annotated[int, Field(3, ge=1, le=5)]
    issues_encountered: List[str] = Field(default_factory=list)
    user_notes: Optional[str] = None
    cooking_context: CookingContext = Field(default_factory=CookingContext)
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @field_validator("created_at")
    @classmethod
    def ensure_timezone(cls, value: datetime) -> datetime:
        """Treat naive timestamps as UTC so histories sort consistently."""
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value


class FeatureVector(BaseModel):
    """Normalized scorer input. Every field lies in its documented range."""

    model_config = ConfigDict(frozen=True)

    # User features
    user_skill_level: Annotated[float, Field(ge=0, le=1)]
    user_experience: Annotated[float, Field(ge=0, le=1)]
    user_success_rate: Annotated[float, Field(ge=0, le=1)]

    # Recipe features
    recipe_complexity: Annotated[float, Field(ge=0, le=1)]
    recipe_total_time: Annotated[float, Field(ge=0, le=1)]
    recipe_ingredient_count: Annotated[float, Field(ge=0, le=1)]
    recipe_instruction_count: Annotated[float, Field(ge=0, le=1)]
    recipe_difficulty: Annotated[float, Field(ge=0, le=1)]

    # User/recipe match features
    skill_gap: Annotated[float, Field(ge=-1, le=1)]
    time_constraint: Annotated[float, Field(ge=0, le=2)]
    equipment_match: Annotated[float, Field(ge=0, le=1)]
    dietary_match: Annotated[float, Field(ge=0, le=1)]
    experience_match: Annotated[float, Field(ge=0, le=1)]

    # Context features
    time_of_day: Annotated[float, Field(ge=0, le=1)]
    stress_level: Annotated[float, Field(ge=0, le=1)]

    # Historical features
    cooking_frequency: Annotated[float, Field(ge=0, le=2)]
    recent_performance: Annotated[float, Field(ge=0, le=1)]


class KeyFactor(BaseModel):
    factor: str
    impact: float
    description: str


class Prediction(BaseModel):
    """Success prediction returned to callers."""

    success_score: Annotated[float, Field(ge=0, le=1)]
    confidence_interval: Tuple[float, float]
    key_factors: List[KeyFactor] = Field(default_factory=list)
    risk_level: RiskLevel
    risk_factors: List[str] = Field(default_factory=list)
    recommendations: List[str] = Field(default_factory=list)
    insights: List[str] = Field(default_factory=list)
    alternative_recipes: List[str] = Field(default_factory=list)

    @model_validator(mode="after")
    def validate_confidence_interval(self) -> "Prediction":
        """Ensure 0 <= lower <= upper <= 1."""
        lower, upper = self.confidence_interval
        if not (0.0 <= lower <= upper <= 1.0):
            raise ValueError(f"confidence_interval must satisfy 0 <= lower <= upper <= 1, got: {self.confidence_interval}")
        return self


class TrainingSample(BaseModel):
    """Feature vector and continuous label recorded for a realized outcome."""

    model_config = ConfigDict(frozen=True)

    outcome: Outcome
    features: FeatureVector
    label: Annotated[float, Field(ge=0, le=1)]


class MetricsReport(BaseModel):
    accuracy: float = 0.0
    precision: float = 0.0
    recall: float = 0.0
    f1_score: float = 0.0
    total_predictions: int = 0
    recent_accuracy: float = 0.0
