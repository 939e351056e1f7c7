import logging

from fastapi import APIRouter, Depends, Path
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from ..database import get_db
from ..errors import ApiError
from ..schemas import SettingsUpdate
from ..services import users as user_service

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/settings", tags=["settings"])


@router.get("/{user_id}")
def get_user_settings(user_id: int = Path(gt=0), db: Session = Depends(get_db)):
    return {"success": True, "data": user_service.get_user_settings(db, user_id)}


@router.put("/{user_id}")
def update_user_settings(update: SettingsUpdate, user_id: int = Path(gt=0), db: Session = Depends(get_db)):
    try:
        settings = user_service.update_user_settings(db, user_id, update)
    except SQLAlchemyError:
        logger.exception("Error updating user settings")
        raise ApiError("Failed to update user settings")

    logger.info("Settings updated for user %s", user_id)
    return {"success": True, "message": "Settings updated successfully", "data": settings}
