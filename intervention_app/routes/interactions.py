"""Endpoints to record step responses and completions for an interaction."""
from fastapi import APIRouter, Depends

from ..schemas.schemas import InteractionOut, StepResponseOut, StepResponseRequest
from ..services.selector import InterventionSelector
from .deps import get_selector

router = APIRouter()


@router.post("/interactions/{interaction_id}/steps/{step_id}/response", response_model=StepResponseOut)
def record_step_response(
    interaction_id: int,
    step_id: int,
    payload: StepResponseRequest,
    selector: InterventionSelector = Depends(get_selector),
):
    """Save (or overwrite) the user's answer to one step of an interaction."""
    return selector.record_step_response(interaction_id, step_id, payload.response)


@router.post("/interactions/{interaction_id}/complete", response_model=InteractionOut)
def complete_interaction(interaction_id: int, selector: InterventionSelector = Depends(get_selector)):
    return selector.complete_intervention(interaction_id)
