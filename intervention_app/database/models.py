"""SQLAlchemy models for the intervention service."""
import enum
from datetime import datetime

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    Date,
    DateTime,
    Enum,
    Float,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    text,
)
from sqlalchemy.orm import declarative_base, relationship

Base = declarative_base()


class StepType(str, enum.Enum):
    QUESTION_SINGLE_CHOICE = "QUESTION_SINGLE_CHOICE"
    QUESTION_MULTIPLE_CHOICE = "QUESTION_MULTIPLE_CHOICE"
    TEXT_INPUT = "TEXT_INPUT"
    TEXT_REFLECTION = "TEXT_REFLECTION"
    INFORMATION = "INFORMATION"
    MEDIA = "MEDIA"


class User(Base):
    """User model; `language` selects the localized content overlay."""
    __tablename__ = "users"

    id = Column(Integer, primary_key=True)
    email = Column(String, unique=True, nullable=False)
    name = Column(String, nullable=True)
    language = Column(String, nullable=False, default="en")
    created_at = Column(DateTime, default=datetime.now)
    updated_at = Column(DateTime, default=datetime.now, onupdate=datetime.now)


class DailyData(Base):
    """Self-reported metrics snapshot, one row per user per calendar day."""
    __tablename__ = "daily_data"
    __table_args__ = (UniqueConstraint("user_id", "date", name="uq_daily_data_user_date"),)

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    date = Column(Date, nullable=False)
    stress_level = Column(Float, nullable=True)
    sleep_hours = Column(Float, nullable=True)
    activity_steps = Column(Integer, nullable=True)
    activity_minutes = Column(Integer, nullable=True)
    created_at = Column(DateTime, default=datetime.now)
    updated_at = Column(DateTime, default=datetime.now, onupdate=datetime.now)


class Intervention(Base):
    """Authored content bundle matched to users by condition label."""
    __tablename__ = "interventions"

    id = Column(Integer, primary_key=True)
    name = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    # e.g. "high_stress_low_sleep_low_activity"
    condition = Column(String, nullable=True, index=True)
    priority = Column(Integer, nullable=False, default=0)
    is_active = Column(Boolean, nullable=False, default=True)
    created_at = Column(DateTime, default=datetime.now)

    exercises = relationship("Exercise", back_populates="intervention", order_by="Exercise.order_index")


class Exercise(Base):
    __tablename__ = "exercises"

    id = Column(Integer, primary_key=True)
    intervention_id = Column(Integer, ForeignKey("interventions.id"), nullable=False, index=True)
    name = Column(String, nullable=False)
    description = Column(Text, nullable=True)
    order_index = Column(Integer, nullable=False, default=0)
    is_active = Column(Boolean, nullable=False, default=True)

    intervention = relationship("Intervention", back_populates="exercises")
    steps = relationship("Step", back_populates="exercise", order_by="Step.order_index")


class Step(Base):
    __tablename__ = "steps"

    id = Column(Integer, primary_key=True)
    exercise_id = Column(Integer, ForeignKey("exercises.id"), nullable=False, index=True)
    type = Column(Enum(StepType), nullable=False)
    # Shape depends on `type`, see schemas.steps
    content = Column(JSON, nullable=False, default=dict)
    order_index = Column(Integer, nullable=False, default=0)
    next_step_rules = Column(JSON, nullable=True)
    is_active = Column(Boolean, nullable=False, default=True)

    exercise = relationship("Exercise", back_populates="steps")


class UserInteraction(Base):
    """One delivery of one intervention to one user on one day."""
    __tablename__ = "user_interactions"
    __table_args__ = (
        # At most one open interaction per user per day
        Index(
            "uq_open_interaction_user_day",
            "user_id",
            "day",
            unique=True,
            sqlite_where=text("completed = 0"),
            postgresql_where=text("completed = false"),
        ),
    )

    id = Column(Integer, primary_key=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    intervention_id = Column(Integer, ForeignKey("interventions.id"), nullable=False)
    date = Column(DateTime, nullable=False)
    day = Column(Date, nullable=False)
    completed = Column(Boolean, nullable=False, default=False)
    started_at = Column(DateTime, nullable=False)
    completed_at = Column(DateTime, nullable=True)

    intervention = relationship("Intervention")
    responses = relationship("StepResponse", back_populates="interaction", order_by="StepResponse.id")


class StepResponse(Base):
    __tablename__ = "step_responses"
    __table_args__ = (
        UniqueConstraint("user_interaction_id", "step_id", name="uq_step_response_interaction_step"),
    )

    id = Column(Integer, primary_key=True)
    user_interaction_id = Column(Integer, ForeignKey("user_interactions.id"), nullable=False)
    step_id = Column(Integer, ForeignKey("steps.id"), nullable=False)
    response = Column(JSON, nullable=False)
    created_at = Column(DateTime, default=datetime.now)
    updated_at = Column(DateTime, default=datetime.now, onupdate=datetime.now)

    interaction = relationship("UserInteraction", back_populates="responses")


class LocalizedContent(Base):
    """Translation overlay for an intervention, exercise or step."""
    __tablename__ = "localized_content"
    __table_args__ = (
        UniqueConstraint("entity_type", "entity_id", "language", name="uq_localized_entity_language"),
    )

    id = Column(Integer, primary_key=True)
    entity_type = Column(String, nullable=False)  # 'intervention', 'exercise' or 'step'
    entity_id = Column(Integer, nullable=False)
    language = Column(String, nullable=False)
    content = Column(JSON, nullable=False)
