from typing import List, Optional
import logging
import uuid
from sqlalchemy import func
from sqlalchemy.orm import Session

from community_feed.core.kinds import ItemKind
from community_feed.modules.items.models.item import Item
from community_feed.modules.items.schemas.item import (
    Item as ItemSchema, ItemCreate, ItemPage, ItemUpdate
)
from community_feed.modules.items.comments.models.comment import Comment
from community_feed.modules.items.likes.services.like import (
    count_likes, delete_likes_for_item, get_like
)
from community_feed.modules.user_management.services.user import get_user, to_author

logger = logging.getLogger(__name__)

def get_item(db: Session, kind: ItemKind, item_id: str) -> Optional[Item]:
    """Get item of the given kind by ID"""
    return db.query(Item).filter(Item.id == item_id, Item.kind == kind.value).first()

def get_items(db: Session, kind: ItemKind, skip: int = 0, limit: int = 20) -> List[Item]:
    """Get items of a kind, newest first"""
    logger.debug(f"Getting {kind.value} with skip={skip}, limit={limit}")
    return (
        db.query(Item)
        .filter(Item.kind == kind.value)
        .order_by(Item.created_at.desc())
        .offset(skip)
        .limit(limit)
        .all()
    )

def count_items(db: Session, kind: ItemKind) -> int:
    return db.query(func.count(Item.id)).filter(Item.kind == kind.value).scalar() or 0

def to_item_schema(db: Session, item: Item, viewer_id: str) -> ItemSchema:
    """Build the client view of an item with counts and permissions for the viewer"""
    comments_count = db.query(func.count(Comment.id)).filter(Comment.item_id == item.id).scalar() or 0
    is_owner = item.author_id == viewer_id

    return ItemSchema(
        id=item.id,
        kind=ItemKind(item.kind),
        content=item.content,
        media_urls=item.media_urls or [],
        author_id=item.author_id,
        author=to_author(get_user(db, item.author_id)),
        created_at=item.created_at,
        updated_at=item.updated_at,
        likes_count=count_likes(db, item.id),
        is_liked=get_like(db, viewer_id, item.id) is not None,
        comments_count=comments_count,
        can_edit=is_owner,
        can_delete=is_owner,
    )

def get_items_page(db: Session, kind: ItemKind, viewer_id: str, page: int = 1, limit: int = 20) -> ItemPage:
    skip = (page - 1) * limit
    total = count_items(db, kind)
    items = get_items(db, kind, skip, limit)

    return ItemPage(
        items=[to_item_schema(db, item, viewer_id) for item in items],
        total=total,
        page=page,
        limit=limit,
        has_more=total > skip + limit,
    )

def create_item(db: Session, kind: ItemKind, item_in: ItemCreate, author_id: str) -> Item:
    """Create new item"""
    logger.info(f"Creating {kind.value} item for author ID: {author_id}")
    item = Item(
        id=str(uuid.uuid4()),
        kind=kind.value,
        author_id=author_id,
        **item_in.model_dump(),
    )
    db.add(item)
    db.commit()
    db.refresh(item)
    return item

def update_item(db: Session, item: Item, item_in: ItemUpdate) -> Item:
    """Update item content, and media when given"""
    logger.info(f"Updating item with ID: {item.id}")
    update_data = item_in.model_dump(exclude_unset=True)
    if update_data.get("media_urls") is None:
        update_data.pop("media_urls", None)

    for field, value in update_data.items():
        setattr(item, field, value)

    db.commit()
    db.refresh(item)
    return item

def delete_item(db: Session, item: Item) -> Item:
    """
    Delete item and all associated comments and likes
    """
    logger.info(f"Deleting item with ID: {item.id}")
    delete_likes_for_item(db, item.id)
    # Replies first, their parents are referenced by parent_id
    db.query(Comment).filter(Comment.item_id == item.id, Comment.parent_id.isnot(None)).delete()
    db.query(Comment).filter(Comment.item_id == item.id).delete()

    db.delete(item)
    db.commit()
    return item
