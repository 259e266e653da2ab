"""Script to create tables and seed sample users, today's metrics and interventions."""
import logging
import sys
from pathlib import Path

# Ensure project root is on sys.path
project_root = Path(__file__).parent.parent
sys.path.append(str(project_root))

from intervention_app.database.session import SessionLocal, init_db, init_sample_data
from intervention_app.database.models import Intervention, User


def seed():
    init_db()
    init_sample_data()
    db = SessionLocal()
    try:
        print(f"Seed complete. Users: {db.query(User).count()}, Interventions: {db.query(Intervention).count()}")
    finally:
        db.close()


if __name__ == '__main__':
    logging.basicConfig(level=logging.INFO)
    seed()
