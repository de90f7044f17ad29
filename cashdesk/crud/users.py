from sqlalchemy.orm import Session
from cashdesk.models import User


def get_user_by_username(db: Session, username: str):
    """Finds an active user by username."""
    return db.query(User).filter(User.username == username, User.is_active == True).first()
