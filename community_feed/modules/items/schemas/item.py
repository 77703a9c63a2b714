from typing import Optional, List
from datetime import datetime
from pydantic import BaseModel, field_validator

from community_feed.core.kinds import ItemKind
from community_feed.modules.user_management.schemas.user import Author

class ItemBase(BaseModel):
    content: str
    media_urls: List[str] = []

    @field_validator("content")
    @classmethod
    def content_not_blank(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("Content cannot be empty")
        return v.strip()

class ItemCreate(ItemBase):
    pass

class ItemUpdate(BaseModel):
    content: str
    media_urls: Optional[List[str]] = None

    @field_validator("content")
    @classmethod
    def content_not_blank(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("Content cannot be empty")
        return v.strip()

class Item(BaseModel):
    """Item returned to client, counts and permissions are per viewer"""
    id: str
    kind: ItemKind
    content: str
    media_urls: List[str] = []
    author_id: str
    author: Optional[Author] = None
    created_at: datetime
    updated_at: datetime
    likes_count: int = 0
    is_liked: bool = False
    comments_count: int = 0
    can_edit: bool = False
    can_delete: bool = False

class ItemPage(BaseModel):
    items: List[Item]
    total: int
    page: int
    limit: int
    has_more: bool
