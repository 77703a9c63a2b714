from typing import List, Optional
import logging
import math
import uuid
from sqlalchemy import func
from sqlalchemy.orm import Session

from community_feed.modules.items.models.item import Item
from community_feed.modules.items.comments.models.comment import Comment
from community_feed.modules.items.comments.schemas.comment import (
    Comment as CommentSchema, CommentCreate, CommentPage, CommentUpdate, CommentWithReplies, Pagination
)
from community_feed.modules.user_management.services.user import get_user, to_author

logger = logging.getLogger(__name__)

def get_comment(db: Session, comment_id: str) -> Optional[Comment]:
    """Get comment by ID"""
    return db.query(Comment).filter(Comment.id == comment_id).first()

def get_top_level_comments(db: Session, item_id: str, skip: int = 0, limit: int = 20) -> List[Comment]:
    """Get top-level comments of an item, newest first"""
    return (
        db.query(Comment)
        .filter(Comment.item_id == item_id, Comment.parent_id.is_(None))
        .order_by(Comment.created_at.desc())
        .offset(skip)
        .limit(limit)
        .all()
    )

def get_comment_replies(db: Session, comment_id: str) -> List[Comment]:
    """Get replies to a comment, oldest first"""
    return (
        db.query(Comment)
        .filter(Comment.parent_id == comment_id)
        .order_by(Comment.created_at.asc())
        .all()
    )

def count_comments(db: Session, item_id: str, top_level_only: bool = False) -> int:
    query = db.query(func.count(Comment.id)).filter(Comment.item_id == item_id)
    if top_level_only:
        query = query.filter(Comment.parent_id.is_(None))
    return query.scalar() or 0

def count_replies(db: Session, comment_id: str) -> int:
    return db.query(func.count(Comment.id)).filter(Comment.parent_id == comment_id).scalar() or 0

def to_comment_schema(db: Session, comment: Comment, item: Item, viewer_id: str, reply_count: Optional[int] = None) -> CommentSchema:
    """Build the client view of a comment; the item author may delete any comment on it"""
    if reply_count is None:
        reply_count = count_replies(db, comment.id) if comment.parent_id is None else 0

    return CommentSchema(
        id=comment.id,
        item_id=comment.item_id,
        user_id=comment.author_id,
        author=to_author(get_user(db, comment.author_id)),
        content=comment.content,
        parent_comment_id=comment.parent_id,
        created_at=comment.created_at,
        updated_at=comment.updated_at,
        can_edit=comment.author_id == viewer_id,
        can_delete=viewer_id in (comment.author_id, item.author_id),
        has_replies=reply_count > 0,
        is_edited=(comment.updated_at - comment.created_at).total_seconds() > 1,
    )

def get_comments_page(
    db: Session, item: Item, viewer_id: str, page: int = 1, limit: int = 20, include_replies: bool = True
) -> CommentPage:
    """Get one page of top-level comments, each carrying its replies when asked"""
    skip = (page - 1) * limit
    total = count_comments(db, item.id, top_level_only=True)
    total_with_replies = count_comments(db, item.id)

    result = []
    for comment in get_top_level_comments(db, item.id, skip, limit):
        reply_models = get_comment_replies(db, comment.id)
        comment_schema = to_comment_schema(db, comment, item, viewer_id, reply_count=len(reply_models))
        replies = []
        if include_replies:
            replies = [to_comment_schema(db, reply, item, viewer_id) for reply in reply_models]
        result.append(CommentWithReplies(**comment_schema.model_dump(), replies=replies))

    total_pages = math.ceil(total / limit) if total else 0
    return CommentPage(
        comments=result,
        pagination=Pagination(
            page=page,
            limit=limit,
            total=total,
            total_with_replies=total_with_replies if include_replies else None,
            total_pages=total_pages,
            has_next_page=page < total_pages,
            has_prev_page=page > 1,
        ),
    )

def create_comment(db: Session, item: Item, comment_in: CommentCreate, author_id: str) -> Comment:
    """Create a new comment or reply on an item"""
    comment = Comment(
        id=str(uuid.uuid4()),
        item_id=item.id,
        author_id=author_id,
        parent_id=comment_in.parent_comment_id,
        content=comment_in.content,
    )

    db.add(comment)
    db.commit()
    db.refresh(comment)

    logger.info(f"Created comment {comment.id} on item {item.id}")
    return comment

def update_comment(db: Session, comment: Comment, comment_in: CommentUpdate) -> Comment:
    """Update comment"""
    comment.content = comment_in.content

    db.add(comment)
    db.commit()
    db.refresh(comment)
    return comment

def delete_comment(db: Session, comment: Comment) -> int:
    """Delete comment and its replies, returning how many rows went"""
    deleted = db.query(Comment).filter(Comment.parent_id == comment.id).delete()
    db.delete(comment)
    db.commit()

    logger.info(f"Deleted comment {comment.id} with {deleted} replies")
    return deleted + 1
