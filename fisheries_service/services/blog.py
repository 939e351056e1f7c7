from sqlalchemy.orm import Session

from ..models import BlogPost
from ..pagination import paginate


def get_published_posts(db: Session, category: str = None, page: int = 1, limit: int = 10):
    query = db.query(BlogPost).filter(BlogPost.is_published.is_(True))
    if category:
        query = query.filter(BlogPost.category == category)
    return paginate(query.order_by(BlogPost.published_at.desc(), BlogPost.id.desc()), page, limit)


def get_post_by_slug(db: Session, slug: str):
    """Returns the post and counts the read, or None when the slug is unknown."""
    post = db.query(BlogPost).filter(BlogPost.slug == slug).first()
    if post:
        post.read_count = (post.read_count or 0) + 1
        db.commit()
        db.refresh(post)
    return post
