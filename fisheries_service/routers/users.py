from fastapi import APIRouter, Depends, Path, Query
from sqlalchemy.orm import Session

from ..database import get_db
from ..errors import NotFoundError
from ..serializers import order_to_dict, user_to_dict
from ..services import users as user_service

router = APIRouter(prefix="/users", tags=["users"])


@router.get("")
def list_users(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    db: Session = Depends(get_db),
):
    users, pagination = user_service.get_active_users(db, page, limit)
    return {"success": True, "data": [user_to_dict(u) for u in users], "pagination": pagination}


@router.get("/{user_id}")
def get_user(user_id: int = Path(gt=0), db: Session = Depends(get_db)):
    user = user_service.get_user_by_id(db, user_id)
    if not user:
        raise NotFoundError("User not found")

    data = user_to_dict(user)
    data["orders"] = [order_to_dict(o) for o in user_service.get_recent_orders(db, user_id)]
    return {"success": True, "data": data}
