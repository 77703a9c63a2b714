from typing import List, Optional
from datetime import datetime
from enum import Enum
from pydantic import BaseModel, ConfigDict

from community_feed.core.kinds import ItemKind


class ThreadStatus(str, Enum):
    UNINITIALIZED = "uninitialized"
    LOADING = "loading"
    READY = "ready"
    FAILED = "failed"


class FrozenModel(BaseModel):
    """Client state is never mutated in place; every change builds a new copy"""
    model_config = ConfigDict(frozen=True)


class Author(FrozenModel):
    user_id: Optional[str] = None
    name: Optional[str] = None
    email: str = ""
    avatar: str = ""
    level: int = 1


class CommentNode(FrozenModel):
    """
    One comment or reply. Replies are owned by value; the parent is only ever
    resolved by looking up parent_comment_id.
    """
    id: str
    item_id: str
    user_id: Optional[str] = None
    author: Optional[Author] = None
    content: str
    created_at: datetime
    updated_at: datetime
    parent_comment_id: Optional[str] = None
    replies: List["CommentNode"] = []

    # Server supplied
    can_edit: bool = False
    can_delete: bool = False
    has_replies: bool = False
    is_edited: bool = False

    # Transient, never sent to the server
    is_editing: bool = False
    is_deleting: bool = False
    provisional_author: bool = False

    @property
    def is_top_level(self) -> bool:
        return self.parent_comment_id is None


CommentNode.model_rebuild()


class FeedItem(FrozenModel):
    id: str
    kind: ItemKind
    author: Optional[Author] = None
    content: str
    media_urls: List[str] = []
    created_at: datetime
    updated_at: Optional[datetime] = None
    likes_count: int = 0
    is_liked: bool = False
    can_edit: bool = False
    can_delete: bool = False
    is_editing: bool = False
    is_deleting: bool = False

    # Thread state
    comments_count: int = 0
    comments: Optional[List[CommentNode]] = None
    thread_status: ThreadStatus = ThreadStatus.UNINITIALIZED
    comments_initialized: bool = False
    comments_page: int = 0
    comments_has_more: bool = False
    comments_error: Optional[str] = None

    @property
    def comments_loading(self) -> bool:
        return self.thread_status == ThreadStatus.LOADING


# Fields the server owns on an item. Merging a server copy touches only these,
# so a refreshed item keeps its local thread state.
ITEM_OWN_FIELDS = (
    "author", "content", "media_urls", "updated_at", "likes_count", "is_liked", "can_edit", "can_delete",
)


class FeedState(FrozenModel):
    kind: ItemKind
    items: List[FeedItem] = []
    total: int = 0
    current_page: int = 0
    loading: bool = False
    loading_more: bool = False
    error: Optional[str] = None
    edit_error: Optional[str] = None
    delete_error: Optional[str] = None
    comment_error: Optional[str] = None

    @property
    def has_more(self) -> bool:
        return len(self.items) < self.total


class ThreadView(FrozenModel):
    """What a thread subscriber sees for one item"""
    item_id: str
    status: ThreadStatus
    comments: List[CommentNode] = []
    comments_count: int = 0
    has_more: bool = False
    loading: bool = False
    error: Optional[str] = None


# Backend responses

class Pagination(BaseModel):
    page: int
    limit: int = 20
    total: int = 0
    total_with_replies: Optional[int] = None
    total_pages: int = 0
    has_next_page: bool = False
    has_prev_page: bool = False

    @property
    def reconciled_count(self) -> int:
        """Comment count including replies when the server reports it"""
        if self.total_with_replies is not None:
            return self.total_with_replies
        return self.total


class CommentPage(BaseModel):
    comments: List[CommentNode]
    pagination: Pagination


class ItemPage(BaseModel):
    items: List[FeedItem]
    total: int
    page: int
    limit: int = 20


class LikeState(BaseModel):
    is_liked: bool
    likes_count: int
