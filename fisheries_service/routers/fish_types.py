from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from ..database import get_db
from ..serializers import fish_type_to_dict
from ..services import catalog

router = APIRouter(prefix="/fish-types", tags=["fish-types"])


@router.get("")
def list_fish_types(db: Session = Depends(get_db)):
    """Retrieves the active fish types, sorted by name."""
    fish_types = catalog.get_active_fish_types(db)
    return {"success": True, "data": [fish_type_to_dict(f) for f in fish_types], "count": len(fish_types)}
