"""Pydantic schemas for request/response models."""
from datetime import date as date_type, datetime
from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field, field_validator

from intervention_app.database.models import StepType
from intervention_app.schemas.steps import NextStepRule

CONDITION_LABEL_PATTERN = r"^(low|high)_stress_(low|high)_sleep_(low|high)_activity$"


class UserBase(BaseModel):
    email: str
    name: Optional[str] = None
    language: str = "en"


class UserCreate(UserBase):
    pass


class UserResponse(UserBase):
    id: int
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class DailyDataUpsert(BaseModel):
    # Defaults to today when omitted
    date: Optional[date_type] = None
    stress_level: Optional[float] = Field(default=None, ge=0)
    sleep_hours: Optional[float] = Field(default=None, ge=0, le=24)
    activity_steps: Optional[int] = Field(default=None, ge=0)
    activity_minutes: Optional[int] = Field(default=None, ge=0)


class DailyDataResponse(BaseModel):
    id: int
    user_id: int
    date: date_type
    stress_level: Optional[float] = None
    sleep_hours: Optional[float] = None
    activity_steps: Optional[int] = None
    activity_minutes: Optional[int] = None

    model_config = {"from_attributes": True}


class StepCreate(BaseModel):
    type: StepType
    content: Dict[str, Any]
    order_index: int = 0
    next_step_rules: Optional[List[NextStepRule]] = None
    is_active: bool = True
    # language -> overlay, e.g. {"es": {"content": {"question": "..."}}}
    translations: Dict[str, Dict[str, Any]] = {}


class ExerciseCreate(BaseModel):
    name: str
    description: Optional[str] = None
    order_index: int = 0
    is_active: bool = True
    steps: List[StepCreate] = []
    translations: Dict[str, Dict[str, Any]] = {}


class InterventionCreate(BaseModel):
    name: str
    description: Optional[str] = None
    condition: str = Field(pattern=CONDITION_LABEL_PATTERN)
    priority: int = 0
    is_active: bool = True
    exercises: List[ExerciseCreate] = []
    translations: Dict[str, Dict[str, Any]] = {}

    @field_validator("name")
    @classmethod
    def _name_not_blank(cls, v: str) -> str:
        if not v.strip():
            raise ValueError("name must not be blank")
        return v.strip()


class InterventionSummary(BaseModel):
    id: int
    name: str
    description: Optional[str] = None
    condition: Optional[str] = None
    priority: int
    is_active: bool

    model_config = {"from_attributes": True}


class StepResponseRequest(BaseModel):
    # Optional at schema level so a missing payload produces a controlled 400 from the service
    response: Optional[Dict[str, Any]] = None


class StepResponseOut(BaseModel):
    id: int
    user_interaction_id: int
    step_id: int
    response: Dict[str, Any]
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class InteractionOut(BaseModel):
    id: int
    user_id: int
    intervention_id: int
    date: datetime
    completed: bool
    started_at: datetime
    completed_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class InteractionDetail(InteractionOut):
    intervention: InterventionSummary
    responses: List[StepResponseOut] = []


class TodayInterventionResponse(BaseModel):
    intervention: Optional[Dict[str, Any]] = None
    interaction_id: Optional[int] = None
    # 'no_data', 'not_needed', 'none_appropriate' when no intervention is returned
    reason: Optional[str] = None
    message: Optional[str] = None
    condition: Optional[str] = None
    reused: bool = False
