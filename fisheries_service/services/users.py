import copy

from sqlalchemy.orm import Session

from ..models import Order, User, UserSettings
from ..pagination import paginate
from ..schemas import SettingsUpdate

DEFAULT_SETTINGS = {
    "notifications": {"email": True, "sms": False, "push": True},
    "preferences": {"currency": "LKR", "language": "en", "timezone": "Asia/Colombo"},
    "delivery": {},
}

SETTINGS_SECTIONS = ("notifications", "preferences", "delivery")


def get_active_users(db: Session, page: int, limit: int):
    query = db.query(User).filter(User.is_active.is_(True)).order_by(User.created_at.desc(), User.id.desc())
    return paginate(query, page, limit)


def get_user_by_id(db: Session, user_id: int):
    return db.query(User).filter(User.id == user_id).first()


def get_recent_orders(db: Session, user_id: int, limit: int = 5):
    return (
        db.query(Order)
        .filter(Order.user_id == user_id)
        .order_by(Order.created_at.desc(), Order.id.desc())
        .limit(limit)
        .all()
    )


def get_user_settings(db: Session, user_id: int) -> dict:
    record = db.query(UserSettings).filter(UserSettings.user_id == user_id).first()
    if not record:
        return copy.deepcopy(DEFAULT_SETTINGS)
    return copy.deepcopy(record.settings)


def update_user_settings(db: Session, user_id: int, update: SettingsUpdate) -> dict:
    """Merges each section that was sent into the stored (or default) settings."""
    changes = update.model_dump(by_alias=True, exclude_unset=True, exclude_none=True)

    settings = get_user_settings(db, user_id)
    for section in SETTINGS_SECTIONS:
        settings[section] = {**settings.get(section, {}), **changes.get(section, {})}

    record = db.query(UserSettings).filter(UserSettings.user_id == user_id).first()
    if record:
        # Assign a new dict so the JSON column is flagged as changed.
        record.settings = settings
    else:
        db.add(UserSettings(user_id=user_id, settings=settings))

    try:
        db.commit()
    except Exception:
        db.rollback()
        raise
    return settings
