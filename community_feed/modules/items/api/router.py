from typing import Any

from fastapi import APIRouter, Depends, HTTPException, status, Path, Query
from sqlalchemy.orm import Session
import logging

from community_feed.core.config import settings
from community_feed.core.kinds import ItemKind
from community_feed.db.session import get_db
from community_feed.deps import get_current_user
from community_feed.modules.user_management.models.user import User
from community_feed.modules.items.models.item import Item
from community_feed.modules.items.schemas.item import (
    Item as ItemSchema, ItemCreate, ItemPage, ItemUpdate
)
from community_feed.modules.items.services.item import (
    get_item, get_items_page, create_item, update_item, delete_item, to_item_schema
)
from community_feed.modules.items.likes.schemas.like import LikeState
from community_feed.modules.items.likes.services.like import toggle_like

logger = logging.getLogger(__name__)

def validate_item(db: Session, kind: ItemKind, item_id: str) -> Item:
    """Return the item of this kind or raise HTTPException"""
    item = get_item(db, kind, item_id)
    if not item:
        raise HTTPException(
            status_code=status.HTTP_404_NOT_FOUND,
            detail="Item not found"
        )
    return item

def _validate_ownership(item: Item, user_id: str) -> None:
    if item.author_id != user_id:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Not enough permissions"
        )

def build_router(kind: ItemKind) -> APIRouter:
    """Item CRUD and like toggle for one kind; mounted under /{kind}"""
    router = APIRouter()

    @router.get("", response_model=ItemPage)
    def read_items(
        *,
        db: Session = Depends(get_db),
        page: int = Query(1, ge=1),
        limit: int = Query(settings.ITEMS_PAGE_SIZE, ge=1, le=settings.MAX_PAGE_SIZE),
        current_user: User = Depends(get_current_user),
    ) -> Any:
        """Retrieve a page of items, newest first"""
        return get_items_page(db, kind, current_user.id, page=page, limit=limit)

    @router.post("", response_model=ItemSchema)
    def create_new_item(
        *,
        db: Session = Depends(get_db),
        item_in: ItemCreate,
        current_user: User = Depends(get_current_user),
    ) -> Any:
        """Create new item"""
        item = create_item(db, kind, item_in, current_user.id)
        return to_item_schema(db, item, current_user.id)

    @router.get("/{item_id}", response_model=ItemSchema)
    def read_item(
        *,
        db: Session = Depends(get_db),
        item_id: str = Path(..., description="The ID of the item"),
        current_user: User = Depends(get_current_user),
    ) -> Any:
        """Get item by ID"""
        item = validate_item(db, kind, item_id)
        return to_item_schema(db, item, current_user.id)

    @router.put("/{item_id}", response_model=ItemSchema)
    def update_item_by_id(
        *,
        db: Session = Depends(get_db),
        item_id: str = Path(..., description="The ID of the item"),
        item_in: ItemUpdate,
        current_user: User = Depends(get_current_user),
    ) -> Any:
        """Update an item"""
        item = validate_item(db, kind, item_id)
        _validate_ownership(item, current_user.id)

        item = update_item(db, item, item_in)
        return to_item_schema(db, item, current_user.id)

    @router.delete("/{item_id}")
    def delete_item_by_id(
        *,
        db: Session = Depends(get_db),
        item_id: str = Path(..., description="The ID of the item"),
        current_user: User = Depends(get_current_user),
    ) -> Any:
        """Delete an item together with its comments and likes"""
        item = validate_item(db, kind, item_id)
        _validate_ownership(item, current_user.id)

        delete_item(db, item)
        return {}

    @router.post("/{item_id}/toggle-like", response_model=LikeState)
    def toggle_item_like(
        *,
        db: Session = Depends(get_db),
        item_id: str = Path(..., description="The ID of the item to like or unlike"),
        current_user: User = Depends(get_current_user),
    ) -> Any:
        """Like the item, or remove the like"""
        validate_item(db, kind, item_id)
        return toggle_like(db, item_id, current_user.id)

    return router
