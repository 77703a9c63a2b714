from typing import Optional
from sqlalchemy.orm import Session

from community_feed.modules.user_management.models.user import User
from community_feed.modules.user_management.schemas.user import Author, UserCreate

def get_user(db: Session, user_id: str) -> Optional[User]:
    """Get user by ID"""
    return db.query(User).filter(User.id == user_id).first()

def create_user(db: Session, user_in: UserCreate) -> User:
    """Create a user, or return the existing one with the same ID"""
    existing = get_user(db, user_in.id)
    if existing:
        return existing

    user = User(**user_in.model_dump())
    db.add(user)
    db.commit()
    db.refresh(user)
    return user

def to_author(user: Optional[User]) -> Optional[Author]:
    """Build the author card for a user row"""
    if user is None:
        return None
    return Author(
        user_id=user.id,
        name=user.name,
        email=user.email or "",
        avatar=user.avatar or "",
        level=user.level or 1,
    )
