"""Admin endpoints for authoring intervention content."""
from typing import List

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..database.session import get_db
from ..database.stores import ContentStore
from ..schemas.schemas import InterventionCreate, InterventionSummary
from ..services.authoring import create_intervention_tree
from ..services.content import serialize_intervention

router = APIRouter()


@router.post("/interventions")
def create_intervention(payload: InterventionCreate, db: Session = Depends(get_db)):
    """Create an intervention with its exercises and steps. Returns the stored tree."""
    intervention = create_intervention_tree(db, payload)
    content = ContentStore(db)
    return serialize_intervention(content.find_intervention(intervention.id), content)


@router.get("/interventions", response_model=List[InterventionSummary])
def list_interventions(active_only: bool = False, db: Session = Depends(get_db)):
    return ContentStore(db).list_interventions(active_only=active_only)
