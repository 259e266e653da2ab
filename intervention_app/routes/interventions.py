"""Per-user intervention endpoints."""
from typing import List, Optional

from fastapi import APIRouter, Depends, Query

from ..schemas.schemas import InteractionDetail, TodayInterventionResponse
from ..services.selector import InterventionSelector
from .deps import get_selector

router = APIRouter()


@router.get("/users/{user_id}/interventions/today", response_model=TodayInterventionResponse)
def get_today_intervention(user_id: int, selector: InterventionSelector = Depends(get_selector)):
    """Return today's intervention for a user, or the reason there is none.

    Calling this again the same day returns the same interaction until it is completed.
    """
    result = selector.get_intervention_for_user(user_id)
    return TodayInterventionResponse(
        intervention=result.intervention,
        interaction_id=result.interaction_id,
        reason=result.reason,
        message=result.message,
        condition=result.condition,
        reused=result.reused,
    )


@router.get("/users/{user_id}/interactions", response_model=List[InteractionDetail])
def list_user_interactions(
    user_id: int,
    limit: Optional[int] = Query(default=None, ge=1),
    completed: Optional[bool] = None,
    selector: InterventionSelector = Depends(get_selector),
):
    """Most recent interactions first, optionally filtered by completion.

    Without `limit` the configured default page size applies.
    """
    return selector.get_user_interactions(user_id, limit=limit, completed=completed)
