"""Intervention Selector

This module decides, once per user per day, whether to deliver an
intervention and which one:
- Loads today's metrics snapshot and runs the classifier
- Reuses the interaction already open today, if any
- Otherwise picks the highest-priority intervention for the user's condition,
  skipping ones completed within the recency window
- Records step responses and completions for the delivered interaction
"""
import logging
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from intervention_app.core.config import Settings, get_settings
from intervention_app.core.exceptions import InternalError, InvalidInputError, NotFoundError
from intervention_app.core.utils import Clock, local_now, start_of_day, window_start
from intervention_app.database.models import Intervention, StepResponse, UserInteraction
from intervention_app.database.stores import OpenInteractionConflict, Stores
from intervention_app.schemas.steps import validate_step_response
from intervention_app.services.classifier import Classifier, Thresholds
from intervention_app.services.content import intervention_summary, serialize_intervention

logger = logging.getLogger(__name__)

NO_DATA = "no_data"
NOT_NEEDED = "not_needed"
NONE_APPROPRIATE = "none_appropriate"

REASON_MESSAGES = {
    NO_DATA: "No daily data available for today",
    NOT_NEEDED: "No intervention needed based on current data",
    NONE_APPROPRIATE: "No appropriate intervention found",
}


@dataclass
class SelectionResult:
    intervention: Optional[Dict[str, Any]] = None
    interaction_id: Optional[int] = None
    reason: Optional[str] = None
    condition: Optional[str] = None
    # True when today's open interaction was returned instead of a new one
    reused: bool = False

    @property
    def message(self) -> Optional[str]:
        if self.reused:
            return "Returning existing active interaction"
        return REASON_MESSAGES.get(self.reason)


def pick_intervention(candidates: List[Intervention], recent_ids) -> Optional[Intervention]:
    """First candidate not seen recently, else the first candidate.

    `candidates` must already be ordered by priority, highest first.
    """
    for candidate in candidates:
        if candidate.id not in recent_ids:
            return candidate
    return candidates[0] if candidates else None


class InterventionSelector:
    def __init__(
        self,
        stores: Stores,
        classifier: Optional[Classifier] = None,
        settings: Optional[Settings] = None,
        clock: Clock = local_now,
    ):
        self.stores = stores
        self.settings = settings or get_settings()
        self.classifier = classifier or Classifier(Thresholds.from_settings(self.settings))
        self.clock = clock

    def get_intervention_for_user(self, user_id: int) -> SelectionResult:
        """Return today's intervention for a user, creating the interaction if needed.

        Repeated calls on the same day return the same open interaction until it
        is completed.
        """
        user = self.stores.users.find_user(user_id)
        if user is None:
            raise NotFoundError(f"User {user_id} not found")

        now = self.clock()
        today = start_of_day(now)
        language = user.language or self.settings.DEFAULT_LANGUAGE

        snapshot = self.stores.metrics.find_snapshot(user_id, now.date())
        if snapshot is None:
            logger.info(f"User {user_id}: no daily data for {today.date()}")
            return SelectionResult(reason=NO_DATA)

        decision = self.classifier.evaluate(snapshot)
        if not decision.should_intervene:
            logger.info(f"User {user_id}: no intervention needed ({decision.condition})")
            return SelectionResult(reason=NOT_NEEDED, condition=decision.condition)

        existing = self.stores.interactions.find_open_interaction(user_id, today)
        if existing is not None:
            logger.info(f"User {user_id}: returning open interaction {existing.id}")
            return self._reuse(existing, language, decision.condition)

        candidates = self.stores.content.find_interventions_by_condition(decision.condition, active_only=True)
        if not candidates:
            logger.info(f"User {user_id}: no active interventions for {decision.condition}")
            return SelectionResult(reason=NONE_APPROPRIATE, condition=decision.condition)

        since = window_start(now, self.settings.RECENCY_WINDOW_DAYS)
        recent_ids = {
            i.intervention_id
            for i in self.stores.interactions.find_interactions_since(user_id, since, completed_only=True)
        }
        selected = pick_intervention(candidates, recent_ids)
        if selected.id in recent_ids:
            logger.info(
                f"User {user_id}: all {len(candidates)} candidates for {decision.condition} seen recently, "
                f"falling back to highest priority {selected.id}"
            )

        try:
            interaction = self.stores.interactions.create_interaction(user_id, selected.id, now)
        except OpenInteractionConflict as e:
            # A concurrent request opened today's interaction first; hand back that one
            logger.warning(f"User {user_id}: concurrent selection detected, reusing the committed interaction")
            existing = self.stores.interactions.find_open_interaction(user_id, today)
            if existing is None:
                raise InternalError(f"Could not open or reuse an interaction for user {user_id}") from e
            return self._reuse(existing, language, decision.condition)

        logger.info(
            f"User {user_id}: delivered intervention {selected.id} ('{selected.name}', priority {selected.priority}) "
            f"as interaction {interaction.id}"
        )
        return SelectionResult(
            intervention=serialize_intervention(selected, self.stores.content, language),
            interaction_id=interaction.id,
            condition=decision.condition,
        )

    def _reuse(self, interaction: UserInteraction, language: str, condition: str) -> SelectionResult:
        intervention = self.stores.content.find_intervention(interaction.intervention_id)
        return SelectionResult(
            intervention=serialize_intervention(intervention, self.stores.content, language),
            interaction_id=interaction.id,
            condition=condition,
            reused=True,
        )

    def record_step_response(self, interaction_id: int, step_id: int, response: Optional[Dict[str, Any]]) -> StepResponse:
        interaction = self.stores.interactions.find_interaction(interaction_id)
        if interaction is None:
            raise NotFoundError(f"Interaction {interaction_id} not found")
        step = self.stores.content.find_step(step_id)
        if step is None:
            raise NotFoundError(f"Step {step_id} not found")
        if not response:
            raise InvalidInputError("Missing response data")

        if self.settings.STRICT_RESPONSE_VALIDATION:
            if not self.stores.content.step_belongs_to(step, interaction.intervention_id):
                raise InvalidInputError(f"Step {step_id} is not part of interaction {interaction_id}")
            response = validate_step_response(step.type, step.content, response)

        record = self.stores.responses.upsert_response(interaction_id, step_id, response)
        logger.info(f"Recorded response {record.id} for interaction {interaction_id}, step {step_id}")
        return record

    def complete_intervention(self, interaction_id: int) -> UserInteraction:
        """Mark an interaction completed; completing twice only re-stamps completed_at."""
        interaction = self.stores.interactions.find_interaction(interaction_id)
        if interaction is None:
            raise NotFoundError(f"Interaction {interaction_id} not found")
        if interaction.completed:
            logger.info(f"Interaction {interaction_id} already completed, re-stamping completion time")
        interaction = self.stores.interactions.complete_interaction(interaction, self.clock())
        logger.info(f"Interaction {interaction_id} completed at {interaction.completed_at}")
        return interaction

    def get_user_interactions(self, user_id: int, limit: Optional[int] = None, completed: Optional[bool] = None) -> List[Dict[str, Any]]:
        limit = self.settings.DEFAULT_INTERACTION_LIMIT if limit is None else limit
        if limit < 1:
            raise InvalidInputError("limit must be at least 1")
        rows = self.stores.interactions.list_interactions(user_id, limit, completed)
        return [
            {
                "id": r.id,
                "user_id": r.user_id,
                "intervention_id": r.intervention_id,
                "date": r.date,
                "completed": r.completed,
                "started_at": r.started_at,
                "completed_at": r.completed_at,
                "intervention": intervention_summary(r.intervention),
                "responses": [
                    {
                        "id": resp.id,
                        "user_interaction_id": resp.user_interaction_id,
                        "step_id": resp.step_id,
                        "response": resp.response,
                        "created_at": resp.created_at,
                        "updated_at": resp.updated_at,
                    }
                    for resp in r.responses
                ],
            }
            for r in rows
        ]
