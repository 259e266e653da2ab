"""Script for inspecting database contents."""
import sys
from pathlib import Path

from tabulate import tabulate

# Add the project root directory to the Python path
project_root = Path(__file__).parent.parent
sys.path.append(str(project_root))

from intervention_app.database.session import SessionLocal
from intervention_app.database.models import DailyData, Intervention, User, UserInteraction


def inspect_db():
    """Display contents of database tables."""
    db = SessionLocal()

    try:
        users = db.query(User).all()
        print("\n=== Users ===")
        print(tabulate([[u.id, u.email, u.name, u.language] for u in users],
                       headers=['ID', 'Email', 'Name', 'Language']))

        daily = db.query(DailyData).order_by(DailyData.date.desc()).all()
        print("\n=== Daily Data ===")
        print(tabulate([[d.user_id, d.date, d.stress_level, d.sleep_hours, d.activity_steps, d.activity_minutes]
                        for d in daily],
                       headers=['User', 'Date', 'Stress', 'Sleep', 'Steps', 'Minutes']))

        interventions = db.query(Intervention).order_by(Intervention.condition, Intervention.priority.desc()).all()
        print("\n=== Interventions ===")
        print(tabulate([[i.id, i.name, i.condition, i.priority, i.is_active, len(i.exercises)]
                        for i in interventions],
                       headers=['ID', 'Name', 'Condition', 'Priority', 'Active', 'Exercises']))

        interactions = db.query(UserInteraction).order_by(UserInteraction.date.desc()).all()
        print("\n=== Interactions ===")
        print(tabulate([[i.id, i.user_id, i.intervention_id, i.date, i.completed, i.completed_at, len(i.responses)]
                        for i in interactions],
                       headers=['ID', 'User', 'Intervention', 'Date', 'Completed', 'Completed At', 'Responses']))

    finally:
        db.close()


if __name__ == "__main__":
    inspect_db()
