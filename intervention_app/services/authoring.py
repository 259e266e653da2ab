"""Authoring helpers: intervention trees and daily metrics.

Trees are written in dependency order (intervention, then its exercises,
then their steps) with explicit foreign keys, followed by translations.
"""
import logging
from datetime import date
from typing import Any, Dict

from sqlalchemy.orm import Session

from intervention_app.database.models import Exercise, Intervention, LocalizedContent, Step
from intervention_app.database.stores import MetricsStore, storage_errors
from intervention_app.schemas.schemas import InterventionCreate
from intervention_app.schemas.steps import validate_step_content

logger = logging.getLogger(__name__)


def _translations(entity_type: str, entity_id: int, overlays: Dict[str, Dict[str, Any]]):
    return [
        LocalizedContent(entity_type=entity_type, entity_id=entity_id, language=language, content=content)
        for language, content in overlays.items()
    ]


def create_intervention_tree(db: Session, payload: InterventionCreate) -> Intervention:
    """Insert an intervention with its exercises, steps and translations in one transaction."""
    # Validate every step before writing anything
    step_contents = [
        [validate_step_content(s.type, s.content) for s in exercise.steps]
        for exercise in payload.exercises
    ]

    with storage_errors(db, "create intervention"):
        intervention = Intervention(
            name=payload.name,
            description=payload.description,
            condition=payload.condition,
            priority=payload.priority,
            is_active=payload.is_active,
        )
        db.add(intervention)
        db.flush()
        translations = _translations("intervention", intervention.id, payload.translations)

        for exercise_in, contents in zip(payload.exercises, step_contents):
            exercise = Exercise(
                intervention_id=intervention.id,
                name=exercise_in.name,
                description=exercise_in.description,
                order_index=exercise_in.order_index,
                is_active=exercise_in.is_active,
            )
            db.add(exercise)
            db.flush()
            translations += _translations("exercise", exercise.id, exercise_in.translations)

            for step_in, content in zip(exercise_in.steps, contents):
                step = Step(
                    exercise_id=exercise.id,
                    type=step_in.type,
                    content=content,
                    order_index=step_in.order_index,
                    next_step_rules=(
                        [r.model_dump() for r in step_in.next_step_rules] if step_in.next_step_rules else None
                    ),
                    is_active=step_in.is_active,
                )
                db.add(step)
                db.flush()
                translations += _translations("step", step.id, step_in.translations)

        db.add_all(translations)
        db.commit()
        db.refresh(intervention)

    logger.info(
        f"Created intervention {intervention.id} '{intervention.name}' for {intervention.condition} "
        f"with {len(payload.exercises)} exercises"
    )
    return intervention


def upsert_daily_data(db: Session, user_id: int, day: date, fields: Dict[str, Any]):
    return MetricsStore(db).upsert_snapshot(user_id, day, fields)
