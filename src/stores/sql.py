"""SQLAlchemy-backed store for profiles, recipes and cooking outcomes.

SQLite (tmp/cooking_outcomes.db) is used by default; set DATABASE_URL for
PostgreSQL in production. Profiles and recipes are stored as JSON documents
and returned as raw rows for the parse boundary. Each outcome is one row in
cooking_outcomes; recording a training sample writes the feature vector and
label onto that row (merge by outcome id).

SQLAlchemy sessions are synchronous, so every public method runs its query in
a worker thread via asyncio.to_thread.
"""

import asyncio
import os
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy import JSON, Column, DateTime, Float, Integer, String, Text, create_engine
from sqlalchemy.orm import Session, declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

from src.models.models import Recipe, TrainingSample
from src.models.records import parse_recipe
from src.stores.base import AlternativeRecipeFinder, OutcomeStore, ProfileLoader, RecipeLoader, select_alternatives
from src.utils.config import config
from src.utils.errors import PersistenceError
from src.utils.logger import logger

Base = declarative_base()

# Upper bound on recipes scanned when looking for alternatives
ALTERNATIVE_CANDIDATE_LIMIT = 500


class CookingProfileRecord(Base):
    __tablename__ = "cooking_profiles"

    id = Column(String, primary_key=True)
    data = Column(JSON, nullable=False, default=dict)
    updated_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))


class RecipeRecord(Base):
    __tablename__ = "recipes"

    id = Column(String, primary_key=True)
    difficulty_level = Column(String, nullable=True, index=True)
    data = Column(JSON, nullable=False, default=dict)
    updated_at = Column(DateTime(timezone=True), default=lambda: datetime.now(timezone.utc))


class CookingOutcomeRecord(Base):
    __tablename__ = "cooking_outcomes"

    id = Column(String, primary_key=True)
    user_id = Column(String, nullable=False, index=True)
    recipe_id = Column(String, nullable=False, index=True)
    adaptation_id = Column(String, nullable=True)
    predicted_success_score = Column(Float, nullable=True)
    actual_outcome = Column(String, nullable=False)
    user_rating = Column(Integer, nullable=False)
    time_taken_minutes = Column(Float, nullable=True)
    difficulty_experienced = Column(Integer, nullable=False)
    issues_encountered = Column(JSON, nullable=False, default=list)
    user_notes = Column(Text, nullable=True)
    cooking_context = Column(JSON, nullable=False, default=dict)
    created_at = Column(DateTime(timezone=True), nullable=False, index=True)
    # Training sample columns, filled when the outcome is recorded
    feature_vector = Column(JSON, nullable=True)
    training_label = Column(Float, nullable=True)

    def to_row(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "user_id": self.user_id,
            "recipe_id": self.recipe_id,
            "adaptation_id": self.adaptation_id,
            "predicted_success_score": self.predicted_success_score,
            "actual_outcome": self.actual_outcome,
            "user_rating": self.user_rating,
            "time_taken_minutes": self.time_taken_minutes,
            "difficulty_experienced": self.difficulty_experienced,
            "issues_encountered": self.issues_encountered,
            "user_notes": self.user_notes,
            "cooking_context": self.cooking_context,
            "created_at": self.created_at,
        }


def resolve_database_url() -> str:
    """DATABASE_URL when set, otherwise a SQLite file under SQLITE_DB_FILE."""
    if config.DATABASE_URL:
        return config.DATABASE_URL
    directory = os.path.dirname(config.SQLITE_DB_FILE)
    if directory:
        os.makedirs(directory, exist_ok=True)
    return f"sqlite:///{config.SQLITE_DB_FILE}"


class SqlStore(ProfileLoader, RecipeLoader, OutcomeStore, AlternativeRecipeFinder):
    """Store implementation over any SQLAlchemy-supported database."""

    def __init__(self, database_url: Optional[str] = None) -> None:
        url = database_url or resolve_database_url()
        engine_kwargs: Dict[str, Any] = {}
        if url.startswith("sqlite"):
            # Sessions run in worker threads
            engine_kwargs["connect_args"] = {"check_same_thread": False}
            if ":memory:" in url or url == "sqlite://":
                engine_kwargs["poolclass"] = StaticPool

        logger.info(f"Using database: {url.split('@')[1] if '@' in url else url}")
        self.engine = create_engine(url, **engine_kwargs)
        self.session_factory = sessionmaker(autocommit=False, autoflush=False, bind=self.engine)
        Base.metadata.create_all(self.engine)

    # ------------------------------------------------------------------
    # Seeding (used by the query CLI and tests)
    # ------------------------------------------------------------------

    def save_profile(self, profile_id: str, data: Dict[str, Any]) -> None:
        session: Session = self.session_factory()
        try:
            session.merge(CookingProfileRecord(id=profile_id, data=data))
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    def save_recipe(self, recipe_id: str, data: Dict[str, Any]) -> None:
        session: Session = self.session_factory()
        try:
            session.merge(RecipeRecord(id=recipe_id, difficulty_level=data.get("difficulty_level"), data=data))
            session.commit()
        except Exception:
            session.rollback()
            raise
        finally:
            session.close()

    # ------------------------------------------------------------------
    # Synchronous queries
    # ------------------------------------------------------------------

    def _load_profile(self, user_id: str) -> Optional[Dict[str, Any]]:
        session: Session = self.session_factory()
        try:
            record = session.get(CookingProfileRecord, user_id)
            return {**(record.data or {}), "id": record.id} if record else None
        finally:
            session.close()

    def _load_recipe(self, recipe_id: str) -> Optional[Dict[str, Any]]:
        session: Session = self.session_factory()
        try:
            record = session.get(RecipeRecord, recipe_id)
            return {**(record.data or {}), "id": record.id} if record else None
        finally:
            session.close()

    def _load_history(self, user_id: str, limit: int) -> List[Dict[str, Any]]:
        session: Session = self.session_factory()
        try:
            records = (
                session.query(CookingOutcomeRecord)
                .filter(CookingOutcomeRecord.user_id == user_id)
                .order_by(CookingOutcomeRecord.created_at.desc())
                .limit(limit)
                .all()
            )
            return [record.to_row() for record in records]
        finally:
            session.close()

    def _load_window(self, limit: int) -> List[Dict[str, Any]]:
        session: Session = self.session_factory()
        try:
            records = (
                session.query(CookingOutcomeRecord)
                .filter(CookingOutcomeRecord.predicted_success_score.isnot(None))
                .order_by(CookingOutcomeRecord.created_at.desc())
                .limit(limit)
                .all()
            )
            return [record.to_row() for record in records]
        finally:
            session.close()

    def _write_sample(self, sample: TrainingSample) -> None:
        outcome = sample.outcome
        session: Session = self.session_factory()
        try:
            session.merge(
                CookingOutcomeRecord(
                    id=outcome.id,
                    user_id=outcome.user_id,
                    recipe_id=outcome.recipe_id,
                    adaptation_id=outcome.adaptation_id,
                    predicted_success_score=outcome.predicted_success_score,
                    actual_outcome=outcome.actual_outcome,
                    user_rating=outcome.user_rating,
                    time_taken_minutes=outcome.time_taken_minutes,
                    difficulty_experienced=outcome.difficulty_experienced,
                    issues_encountered=list(outcome.issues_encountered),
                    user_notes=outcome.user_notes,
                    cooking_context=outcome.cooking_context.model_dump(exclude_none=True),
                    created_at=outcome.created_at.astimezone(timezone.utc),
                    feature_vector=sample.features.model_dump(),
                    training_label=sample.label,
                )
            )
            session.commit()
        except Exception as e:
            session.rollback()
            raise PersistenceError(f"Failed to write outcome {outcome.id}: {e}") from e
        finally:
            session.close()

    def _load_candidates(self) -> List[Recipe]:
        session: Session = self.session_factory()
        try:
            records = session.query(RecipeRecord).limit(ALTERNATIVE_CANDIDATE_LIMIT).all()
            return [parse_recipe({**(record.data or {}), "id": record.id}) for record in records]
        finally:
            session.close()

    # ------------------------------------------------------------------
    # Store interface
    # ------------------------------------------------------------------

    async def get_user_profile(self, user_id: str) -> Optional[Dict[str, Any]]:
        return await asyncio.to_thread(self._load_profile, user_id)

    async def get_recipe(self, recipe_id: str) -> Optional[Dict[str, Any]]:
        return await asyncio.to_thread(self._load_recipe, recipe_id)

    async def get_outcome_history(self, user_id: str, limit: int = 50) -> List[Dict[str, Any]]:
        return await asyncio.to_thread(self._load_history, user_id, limit)

    async def persist_training_sample(self, sample: TrainingSample) -> None:
        await asyncio.to_thread(self._write_sample, sample)

    async def get_outcomes_window(self, limit: int = 1000) -> List[Dict[str, Any]]:
        return await asyncio.to_thread(self._load_window, limit)

    async def find_alternative_recipes(self, user_id: str, recipe: Recipe, limit: int = 3) -> List[str]:
        candidates = await asyncio.to_thread(self._load_candidates)
        return select_alternatives(recipe, candidates, limit)
