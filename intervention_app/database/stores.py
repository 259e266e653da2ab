"""SQLAlchemy-backed storage collaborators.

Each store wraps one `Session`, i.e. one unit of work per request. The
selector receives them through `Stores` so tests can hand in their own
session (or their own stores).
"""
import logging
from contextlib import contextmanager
from dataclasses import dataclass
from datetime import date, datetime
from typing import Any, Dict, Iterable, List, Optional

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session, selectinload

from intervention_app.core.exceptions import InternalError, InvalidInputError
from intervention_app.database.models import (
    DailyData,
    Exercise,
    Intervention,
    LocalizedContent,
    Step,
    StepResponse,
    User,
    UserInteraction,
)

logger = logging.getLogger(__name__)

SNAPSHOT_FIELDS = ("stress_level", "sleep_hours", "activity_steps", "activity_minutes")


class OpenInteractionConflict(Exception):
    """Another open interaction for the same user and day was committed first."""


@contextmanager
def storage_errors(db: Session, action: str):
    """Roll back and surface unexpected storage failures as InternalError."""
    try:
        yield
    except SQLAlchemyError as e:
        db.rollback()
        logger.exception(f"Storage failure while trying to {action}")
        raise InternalError(f"Storage failure while trying to {action}") from e


class UserStore:
    def __init__(self, db: Session):
        self.db = db

    def find_user(self, user_id: int) -> Optional[User]:
        with storage_errors(self.db, "load user"):
            return self.db.query(User).filter(User.id == user_id).first()

    def create_user(self, email: str, name: Optional[str] = None, language: str = "en") -> User:
        user = User(email=email.strip(), name=name, language=language)
        with storage_errors(self.db, "create user"):
            self.db.add(user)
            try:
                self.db.commit()
            except IntegrityError as e:
                self.db.rollback()
                raise InvalidInputError(f"Email '{email}' already exists") from e
            self.db.refresh(user)
        return user


class MetricsStore:
    def __init__(self, db: Session):
        self.db = db

    def find_snapshot(self, user_id: int, day: date) -> Optional[DailyData]:
        """The (user, day) snapshot; rows for other days, earlier or later, never match."""
        with storage_errors(self.db, "load daily data"):
            return (
                self.db.query(DailyData)
                .filter(DailyData.user_id == user_id, DailyData.date == day)
                .first()
            )

    def upsert_snapshot(self, user_id: int, day: date, fields: Dict[str, Any]) -> DailyData:
        """Create or update the (user, day) snapshot; last write wins."""
        values = {k: v for k, v in fields.items() if k in SNAPSHOT_FIELDS}
        with storage_errors(self.db, "save daily data"):
            for attempt in range(2):
                row = (
                    self.db.query(DailyData)
                    .filter(DailyData.user_id == user_id, DailyData.date == day)
                    .first()
                )
                if row is None:
                    row = DailyData(user_id=user_id, date=day)
                    self.db.add(row)
                for key, value in values.items():
                    setattr(row, key, value)
                try:
                    self.db.commit()
                except IntegrityError:
                    # Lost the insert race; the row exists now, update it instead
                    self.db.rollback()
                    if attempt:
                        raise
                    logger.warning(f"Concurrent daily data insert for user {user_id} on {day}, retrying as update")
                    continue
                self.db.refresh(row)
                return row


class ContentStore:
    def __init__(self, db: Session):
        self.db = db

    def _tree(self, query):
        return query.options(selectinload(Intervention.exercises).selectinload(Exercise.steps))

    def find_interventions_by_condition(self, condition: str, active_only: bool = True) -> List[Intervention]:
        """Interventions for a label, highest priority first, ties in creation order."""
        with storage_errors(self.db, "load interventions"):
            q = self._tree(self.db.query(Intervention)).filter(Intervention.condition == condition)
            if active_only:
                q = q.filter(Intervention.is_active.is_(True))
            return q.order_by(Intervention.priority.desc(), Intervention.id.asc()).all()

    def find_intervention(self, intervention_id: int) -> Optional[Intervention]:
        with storage_errors(self.db, "load intervention"):
            return self._tree(self.db.query(Intervention)).filter(Intervention.id == intervention_id).first()

    def list_interventions(self, active_only: bool = False) -> List[Intervention]:
        with storage_errors(self.db, "list interventions"):
            q = self.db.query(Intervention)
            if active_only:
                q = q.filter(Intervention.is_active.is_(True))
            return q.order_by(Intervention.condition, Intervention.priority.desc(), Intervention.id).all()

    def find_step(self, step_id: int) -> Optional[Step]:
        with storage_errors(self.db, "load step"):
            return self.db.query(Step).filter(Step.id == step_id).first()

    def step_belongs_to(self, step: Step, intervention_id: int) -> bool:
        with storage_errors(self.db, "load exercise"):
            exercise = self.db.query(Exercise).filter(Exercise.id == step.exercise_id).first()
        return exercise is not None and exercise.intervention_id == intervention_id

    def find_translations(self, entity_type: str, entity_ids: Iterable[int], language: str) -> Dict[int, Dict[str, Any]]:
        ids = list(entity_ids)
        if not ids:
            return {}
        with storage_errors(self.db, "load translations"):
            rows = (
                self.db.query(LocalizedContent)
                .filter(
                    LocalizedContent.entity_type == entity_type,
                    LocalizedContent.entity_id.in_(ids),
                    LocalizedContent.language == language,
                )
                .all()
            )
        return {r.entity_id: r.content or {} for r in rows}


class InteractionStore:
    def __init__(self, db: Session):
        self.db = db

    def find_interaction(self, interaction_id: int) -> Optional[UserInteraction]:
        with storage_errors(self.db, "load interaction"):
            return self.db.query(UserInteraction).filter(UserInteraction.id == interaction_id).first()

    def find_open_interaction(self, user_id: int, since: datetime) -> Optional[UserInteraction]:
        with storage_errors(self.db, "load open interaction"):
            return (
                self.db.query(UserInteraction)
                .filter(
                    UserInteraction.user_id == user_id,
                    UserInteraction.date >= since,
                    UserInteraction.completed.is_(False),
                )
                .order_by(UserInteraction.date.desc(), UserInteraction.id.desc())
                .first()
            )

    def create_interaction(self, user_id: int, intervention_id: int, now: datetime) -> UserInteraction:
        """Insert an open interaction; raises OpenInteractionConflict if one already exists today."""
        interaction = UserInteraction(
            user_id=user_id,
            intervention_id=intervention_id,
            date=now,
            day=now.date(),
            completed=False,
            started_at=now,
        )
        with storage_errors(self.db, "create interaction"):
            self.db.add(interaction)
            try:
                self.db.commit()
            except IntegrityError as e:
                self.db.rollback()
                raise OpenInteractionConflict(f"user {user_id} already has an open interaction on {now.date()}") from e
            self.db.refresh(interaction)
        return interaction

    def complete_interaction(self, interaction: UserInteraction, now: datetime) -> UserInteraction:
        with storage_errors(self.db, "complete interaction"):
            interaction.completed = True
            interaction.completed_at = now
            self.db.commit()
            self.db.refresh(interaction)
        return interaction

    def list_interactions(self, user_id: int, limit: int, completed: Optional[bool] = None) -> List[UserInteraction]:
        with storage_errors(self.db, "list interactions"):
            q = (
                self.db.query(UserInteraction)
                .options(selectinload(UserInteraction.intervention), selectinload(UserInteraction.responses))
                .filter(UserInteraction.user_id == user_id)
            )
            if completed is not None:
                q = q.filter(UserInteraction.completed.is_(completed))
            return q.order_by(UserInteraction.date.desc(), UserInteraction.id.desc()).limit(limit).all()

    def find_interactions_since(self, user_id: int, since: datetime, completed_only: bool = True) -> List[UserInteraction]:
        with storage_errors(self.db, "load recent interactions"):
            q = self.db.query(UserInteraction).filter(
                UserInteraction.user_id == user_id,
                UserInteraction.date >= since,
            )
            if completed_only:
                q = q.filter(UserInteraction.completed.is_(True))
            return q.order_by(UserInteraction.date.desc()).all()


class ResponseStore:
    def __init__(self, db: Session):
        self.db = db

    def find_response(self, interaction_id: int, step_id: int) -> Optional[StepResponse]:
        with storage_errors(self.db, "load step response"):
            return (
                self.db.query(StepResponse)
                .filter(StepResponse.user_interaction_id == interaction_id, StepResponse.step_id == step_id)
                .first()
            )

    def upsert_response(self, interaction_id: int, step_id: int, payload: Dict[str, Any]) -> StepResponse:
        """Store the answer for (interaction, step), overwriting any earlier one."""
        with storage_errors(self.db, "save step response"):
            for attempt in range(2):
                existing = self.find_response(interaction_id, step_id)
                if existing is not None:
                    existing.response = payload
                    record = existing
                else:
                    record = StepResponse(user_interaction_id=interaction_id, step_id=step_id, response=payload)
                    self.db.add(record)
                try:
                    self.db.commit()
                except IntegrityError:
                    self.db.rollback()
                    if attempt:
                        raise
                    logger.warning(
                        f"Concurrent response insert for interaction {interaction_id}, step {step_id}; retrying as update"
                    )
                    continue
                self.db.refresh(record)
                return record


@dataclass
class Stores:
    users: UserStore
    metrics: MetricsStore
    content: ContentStore
    interactions: InteractionStore
    responses: ResponseStore

    @classmethod
    def from_session(cls, db: Session) -> "Stores":
        return cls(
            users=UserStore(db),
            metrics=MetricsStore(db),
            content=ContentStore(db),
            interactions=InteractionStore(db),
            responses=ResponseStore(db),
        )
