from typing import Optional
import uuid
from sqlalchemy import func
from sqlalchemy.orm import Session

from community_feed.modules.items.likes.models.like import Like
from community_feed.modules.items.likes.schemas.like import LikeState

def get_like(db: Session, user_id: str, item_id: str) -> Optional[Like]:
    """Get like by user ID and item ID"""
    return (
        db.query(Like)
        .filter(Like.user_id == user_id, Like.item_id == item_id)
        .first()
    )

def count_likes(db: Session, item_id: str) -> int:
    return db.query(func.count(Like.id)).filter(Like.item_id == item_id).scalar() or 0

def toggle_like(db: Session, item_id: str, user_id: str) -> LikeState:
    """Like the item, or remove the like if the user already liked it"""
    existing_like = get_like(db, user_id, item_id)

    if existing_like:
        db.delete(existing_like)
        is_liked = False
    else:
        db.add(Like(id=str(uuid.uuid4()), user_id=user_id, item_id=item_id))
        is_liked = True
    db.commit()

    return LikeState(is_liked=is_liked, likes_count=count_likes(db, item_id))

def delete_likes_for_item(db: Session, item_id: str) -> None:
    db.query(Like).filter(Like.item_id == item_id).delete()
