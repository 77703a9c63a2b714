from typing import Optional, List
from datetime import datetime
from pydantic import BaseModel, field_validator

from community_feed.modules.user_management.schemas.user import Author

class CommentBase(BaseModel):
    content: str

    @field_validator("content")
    @classmethod
    def content_not_blank(cls, v: str) -> str:
        if not v or not v.strip():
            raise ValueError("Comment content cannot be empty")
        return v.strip()

class CommentCreate(CommentBase):
    parent_comment_id: Optional[str] = None

class CommentUpdate(CommentBase):
    pass

class Comment(BaseModel):
    """Comment model returned to client"""
    id: str
    item_id: str
    user_id: str
    author: Optional[Author] = None
    content: str
    parent_comment_id: Optional[str] = None
    created_at: datetime
    updated_at: datetime
    can_edit: bool = False
    can_delete: bool = False
    has_replies: bool = False
    is_edited: bool = False

class CommentWithReplies(Comment):
    """Top-level comment with its replies"""
    replies: List[Comment] = []

class Pagination(BaseModel):
    page: int
    limit: int
    total: int
    total_with_replies: Optional[int] = None
    total_pages: int
    has_next_page: bool
    has_prev_page: bool

class CommentPage(BaseModel):
    comments: List[CommentWithReplies]
    pagination: Pagination

class CommentCount(BaseModel):
    count: int
