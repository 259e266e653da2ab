"""Request-scoped dependencies shared by the routers."""
from fastapi import Depends
from sqlalchemy.orm import Session

from ..core.config import Settings, get_settings
from ..database.session import get_db
from ..database.stores import Stores
from ..services.selector import InterventionSelector


def get_stores(db: Session = Depends(get_db)) -> Stores:
    return Stores.from_session(db)


def get_selector(
    stores: Stores = Depends(get_stores),
    settings: Settings = Depends(get_settings),
) -> InterventionSelector:
    return InterventionSelector(stores, settings=settings)
