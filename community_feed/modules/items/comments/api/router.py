from typing import Any

from fastapi import APIRouter, Depends, HTTPException, status, Path, Query
from sqlalchemy.orm import Session
import logging

from community_feed.core.config import settings
from community_feed.core.kinds import ItemKind
from community_feed.db.session import get_db
from community_feed.deps import get_current_user
from community_feed.modules.user_management.models.user import User
from community_feed.modules.items.api.router import validate_item
from community_feed.modules.items.models.item import Item
from community_feed.modules.items.services.item import get_item
from community_feed.modules.items.comments.models.comment import Comment
from community_feed.modules.items.comments.schemas.comment import (
    Comment as CommentSchema, CommentCount, CommentCreate, CommentPage, CommentUpdate
)
from community_feed.modules.items.comments.services.comment import (
    get_comment, get_comments_page, count_comments, create_comment, update_comment,
    delete_comment, to_comment_schema
)

logger = logging.getLogger(__name__)

def _validate_comment(db: Session, kind: ItemKind, comment_id: str) -> Comment:
    """Return the comment if it lives on an item of this kind, or raise HTTPException"""
    comment = get_comment(db, comment_id=comment_id)
    if not comment or not get_item(db, kind, comment.item_id):
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Comment not found"
        )
    return comment

def _validate_parent(db: Session, item: Item, parent_id: str) -> None:
    """Replies may only target a top-level comment of the same item"""
    parent = get_comment(db, comment_id=parent_id)
    if not parent or parent.item_id != item.id:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Parent comment does not belong to this item"
        )
    if parent.parent_id is not None:
        raise HTTPException(
            status_code=status.HTTP_400_BAD_REQUEST,
            detail="Replies can only be added to top-level comments"
        )

def build_router(kind: ItemKind) -> APIRouter:
    """Threaded comments for one kind; mounted under /{kind} before the item routes"""
    router = APIRouter()

    @router.put("/comments/{comment_id}", response_model=CommentSchema)
    def update_comment_by_id(
        *,
        db: Session = Depends(get_db),
        comment_id: str = Path(..., description="The ID of the comment"),
        comment_in: CommentUpdate,
        current_user: User = Depends(get_current_user),
    ) -> Any:
        """Update a comment"""
        comment = _validate_comment(db, kind, comment_id)
        if comment.author_id != current_user.id:
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Not enough permissions"
            )

        item = get_item(db, kind, comment.item_id)
        updated_comment = update_comment(db, comment, comment_in)
        return to_comment_schema(db, updated_comment, item, current_user.id)

    @router.delete("/comments/{comment_id}")
    def delete_comment_by_id(
        *,
        db: Session = Depends(get_db),
        comment_id: str = Path(..., description="The ID of the comment"),
        current_user: User = Depends(get_current_user),
    ) -> Any:
        """Delete a comment and its replies"""
        comment = _validate_comment(db, kind, comment_id)
        item = get_item(db, kind, comment.item_id)
        if current_user.id not in (comment.author_id, item.author_id):
            raise HTTPException(
                status_code=status.HTTP_403_FORBIDDEN,
                detail="Not enough permissions"
            )

        delete_comment(db, comment)
        return {}

    @router.get("/{item_id}/comments", response_model=CommentPage)
    def read_comments(
        *,
        db: Session = Depends(get_db),
        item_id: str = Path(..., description="The ID of the item to get comments for"),
        page: int = Query(1, ge=1),
        limit: int = Query(settings.COMMENTS_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
        include_replies: bool = Query(True),
        current_user: User = Depends(get_current_user),
    ) -> Any:
        """Get a page of top-level comments with their replies"""
        item = validate_item(db, kind, item_id)
        return get_comments_page(
            db, item, current_user.id, page=page, limit=limit, include_replies=include_replies
        )

    @router.post("/{item_id}/comments", response_model=CommentSchema)
    def create_new_comment(
        *,
        db: Session = Depends(get_db),
        item_id: str = Path(..., description="The ID of the item to comment on"),
        comment_in: CommentCreate,
        current_user: User = Depends(get_current_user),
    ) -> Any:
        """Create new comment, or a reply when parent_comment_id is given"""
        item = validate_item(db, kind, item_id)
        if comment_in.parent_comment_id:
            _validate_parent(db, item, comment_in.parent_comment_id)

        comment = create_comment(db, item, comment_in, current_user.id)
        return to_comment_schema(db, comment, item, current_user.id)

    @router.get("/{item_id}/comments/count", response_model=CommentCount)
    def read_comment_count(
        *,
        db: Session = Depends(get_db),
        item_id: str = Path(..., description="The ID of the item"),
        current_user: User = Depends(get_current_user),
    ) -> Any:
        """Count comments on an item, replies included"""
        item = validate_item(db, kind, item_id)
        return CommentCount(count=count_comments(db, item.id))

    return router
