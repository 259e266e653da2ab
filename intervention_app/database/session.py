"""Database session and engine configuration with sample data."""
import logging
from datetime import date

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from intervention_app.core.config import get_settings
from intervention_app.database.models import Base, Intervention, User

logger = logging.getLogger(__name__)

settings = get_settings()


def build_engine(database_url: str, timeout: float = settings.DB_TIMEOUT_SECONDS):
    """Create an engine; SQLite gets cross-thread access and a busy timeout."""
    connect_args = {}
    if database_url.startswith("sqlite"):
        connect_args = {"check_same_thread": False, "timeout": timeout}
    return create_engine(database_url, connect_args=connect_args)


engine = build_engine(settings.DATABASE_URL)

# Create session factory
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def init_db(bind=None):
    """Create tables if they do not exist yet."""
    Base.metadata.create_all(bind=bind or engine)


def init_sample_data(session_factory=None, today: date = None):
    """Initialize the database with sample users, today's metrics and interventions.

    Only seeds when the tables are empty, so it is safe to call on every start.
    """
    from intervention_app.services.authoring import create_intervention_tree, upsert_daily_data
    from intervention_app.database.sample_data import SAMPLE_INTERVENTIONS

    session_factory = session_factory or SessionLocal
    today = today or date.today()
    db = session_factory()
    try:
        if db.query(User).count() == 0:
            sample_users = [
                User(email="user1@example.com", name="User One", language="en"),
                User(email="user2@example.com", name="User Two", language="es"),
            ]
            db.add_all(sample_users)
            db.commit()
            # user1: high stress, low sleep, low activity -> intervention expected
            upsert_daily_data(db, sample_users[0].id, today, {
                "stress_level": 3.5, "sleep_hours": 4.5,
                "activity_steps": 2500, "activity_minutes": 5,
            })
            # user2: relaxed, rested and active -> no intervention
            upsert_daily_data(db, sample_users[1].id, today, {
                "stress_level": 2.2, "sleep_hours": 8.0,
                "activity_steps": 8000, "activity_minutes": 30,
            })
            logger.info(f"Seeded {len(sample_users)} sample users")

        if db.query(Intervention).count() == 0:
            for payload in SAMPLE_INTERVENTIONS:
                create_intervention_tree(db, payload)
            logger.info(f"Seeded {len(SAMPLE_INTERVENTIONS)} sample interventions")
    finally:
        db.close()


def get_db():
    """Dependency for database sessions."""
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
