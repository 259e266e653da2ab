"""Serialize intervention trees for delivery, with localized overlays."""
from typing import Any, Dict, Optional

from intervention_app.database.models import Intervention
from intervention_app.database.stores import ContentStore


def merge_overlay(base: Dict[str, Any], overlay: Optional[Dict[str, Any]]) -> Dict[str, Any]:
    """Overlay keys replace top-level fields; nested `content` mappings merge key by key."""
    if not overlay:
        return base
    merged = dict(base)
    for key, value in overlay.items():
        if key == "content" and isinstance(value, dict) and isinstance(merged.get("content"), dict):
            merged["content"] = {**merged["content"], **value}
        else:
            merged[key] = value
    return merged


def intervention_summary(intervention: Intervention) -> Dict[str, Any]:
    return {
        "id": intervention.id,
        "name": intervention.name,
        "description": intervention.description,
        "condition": intervention.condition,
        "priority": intervention.priority,
        "is_active": intervention.is_active,
    }


def serialize_intervention(intervention: Intervention, content: ContentStore, language: Optional[str] = None) -> Dict[str, Any]:
    """Full delivery tree: active exercises and steps in order, translated for `language`."""
    exercises = sorted(
        (e for e in intervention.exercises if e.is_active),
        key=lambda e: (e.order_index, e.id),
    )
    steps_by_exercise = {
        e.id: sorted((s for s in e.steps if s.is_active), key=lambda s: (s.order_index, s.id))
        for e in exercises
    }

    overlays = {"intervention": {}, "exercise": {}, "step": {}}
    if language:
        overlays["intervention"] = content.find_translations("intervention", [intervention.id], language)
        overlays["exercise"] = content.find_translations("exercise", [e.id for e in exercises], language)
        step_ids = [s.id for steps in steps_by_exercise.values() for s in steps]
        overlays["step"] = content.find_translations("step", step_ids, language)

    exercise_out = []
    for e in exercises:
        steps_out = []
        for s in steps_by_exercise[e.id]:
            step = {
                "id": s.id,
                "type": s.type.value,
                "content": dict(s.content or {}),
                "order_index": s.order_index,
                "next_step_rules": s.next_step_rules,
            }
            steps_out.append(merge_overlay(step, overlays["step"].get(s.id)))
        exercise = {
            "id": e.id,
            "name": e.name,
            "description": e.description,
            "order_index": e.order_index,
        }
        exercise = merge_overlay(exercise, overlays["exercise"].get(e.id))
        exercise["steps"] = steps_out
        exercise_out.append(exercise)

    out = merge_overlay(intervention_summary(intervention), overlays["intervention"].get(intervention.id))
    out["exercises"] = exercise_out
    out["language"] = language
    return out
