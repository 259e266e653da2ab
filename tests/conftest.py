"""Shared test fixtures."""
from datetime import datetime, timedelta

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from intervention_app.core.config import Settings
from intervention_app.database.models import Base, User, UserInteraction
from intervention_app.database.stores import Stores
from intervention_app.schemas.schemas import ExerciseCreate, InterventionCreate, StepCreate
from intervention_app.services.authoring import create_intervention_tree, upsert_daily_data
from intervention_app.services.selector import InterventionSelector

LOW_EVERYTHING = {"stress_level": 1.0, "sleep_hours": 3.0, "activity_steps": 1000}
HIGH_STRESS_LOW_SLEEP_LOW_ACTIVITY = {"stress_level": 3.5, "sleep_hours": 4.5, "activity_steps": 2500, "activity_minutes": 5}


class FakeClock:
    """Callable clock the tests can move forward."""

    def __init__(self, now: datetime):
        self.now = now

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs):
        self.now = self.now + timedelta(**kwargs)


@pytest.fixture()
def engine():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield engine
    engine.dispose()


@pytest.fixture()
def session_factory(engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=engine)


@pytest.fixture()
def db(session_factory):
    session = session_factory()
    yield session
    session.close()


@pytest.fixture()
def settings():
    return Settings(_env_file=None)


@pytest.fixture()
def clock():
    return FakeClock(datetime(2026, 3, 10, 9, 30))


@pytest.fixture()
def stores(db):
    return Stores.from_session(db)


@pytest.fixture()
def selector(stores, settings, clock):
    return InterventionSelector(stores, settings=settings, clock=clock)


def make_user(db, email="user@example.com", language="en") -> User:
    user = User(email=email, name=email.split("@")[0], language=language)
    db.add(user)
    db.commit()
    db.refresh(user)
    return user


def add_snapshot(db, user, day, **fields):
    return upsert_daily_data(db, user.id, day, fields)


def make_intervention(db, name, condition, priority=0, is_active=True, exercises=None, translations=None):
    if exercises is None:
        exercises = [
            ExerciseCreate(
                name=f"{name} exercise",
                steps=[
                    StepCreate(
                        type="INFORMATION",
                        content={"content": f"{name} info", "acknowledgmentRequired": True},
                    ),
                ],
            ),
        ]
    return create_intervention_tree(db, InterventionCreate(
        name=name,
        condition=condition,
        priority=priority,
        is_active=is_active,
        exercises=exercises,
        translations=translations or {},
    ))


def add_completed_interaction(db, user, intervention, when: datetime) -> UserInteraction:
    interaction = UserInteraction(
        user_id=user.id,
        intervention_id=intervention.id,
        date=when,
        day=when.date(),
        completed=True,
        started_at=when,
        completed_at=when,
    )
    db.add(interaction)
    db.commit()
    db.refresh(interaction)
    return interaction
