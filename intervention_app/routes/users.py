"""User-related API endpoints."""
from datetime import date

from fastapi import APIRouter, Depends

from ..core.exceptions import NotFoundError
from ..database.stores import Stores
from ..schemas.schemas import DailyDataResponse, DailyDataUpsert, UserCreate, UserResponse
from .deps import get_stores

router = APIRouter()


@router.post("", response_model=UserResponse)
@router.post("/", response_model=UserResponse)
def create_user(user: UserCreate, stores: Stores = Depends(get_stores)):
    """Create a new user."""
    return stores.users.create_user(user.email, name=user.name, language=user.language)


@router.get("/{user_id}", response_model=UserResponse)
def get_user(user_id: int, stores: Stores = Depends(get_stores)):
    """Get a specific user by ID."""
    user = stores.users.find_user(user_id)
    if user is None:
        raise NotFoundError(f"User {user_id} not found")
    return user


@router.put("/{user_id}/daily-data", response_model=DailyDataResponse)
def upsert_daily_data(user_id: int, payload: DailyDataUpsert, stores: Stores = Depends(get_stores)):
    """Create or update a user's metrics for one day (today unless `date` is given).

    Fields left out of the request keep their stored values.
    """
    if stores.users.find_user(user_id) is None:
        raise NotFoundError(f"User {user_id} not found")
    fields = payload.model_dump(exclude={"date"}, exclude_unset=True)
    return stores.metrics.upsert_snapshot(user_id, payload.date or date.today(), fields)
