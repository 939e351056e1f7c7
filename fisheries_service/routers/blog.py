from typing import Optional

from fastapi import APIRouter, Depends, Path, Query
from sqlalchemy.orm import Session

from ..database import get_db
from ..errors import NotFoundError
from ..schemas import BlogCategory
from ..serializers import blog_post_to_dict
from ..services import blog as blog_service

router = APIRouter(prefix="/blog", tags=["blog"])


@router.get("")
def get_all_posts(
    category: Optional[BlogCategory] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=50),
    db: Session = Depends(get_db),
):
    posts, pagination = blog_service.get_published_posts(db, category, page, limit)
    return {"success": True, "data": [blog_post_to_dict(p) for p in posts], "pagination": pagination}


@router.get("/{slug}")
def get_post_by_slug(slug: str = Path(min_length=1), db: Session = Depends(get_db)):
    post = blog_service.get_post_by_slug(db, slug)
    if not post:
        raise NotFoundError("Blog post not found")
    return {"success": True, "data": blog_post_to_dict(post)}
