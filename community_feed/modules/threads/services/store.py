"""
Feed collection store: the ordered items of one kind plus paging state.

The store is the single place state changes are committed. Every mutation
builds a new FeedState and hands it to listeners synchronously, and no commit
spans an await, so readers only ever see whole states.
"""

from typing import Any, Callable, Iterable, List, Optional
import logging

from community_feed.core.config import settings
from community_feed.core.exceptions import BackendError, NotFoundError
from community_feed.core.kinds import ItemKind
from community_feed.modules.threads.client.backend import FeedBackend
from community_feed.modules.threads.schemas.thread import ITEM_OWN_FIELDS, FeedItem, FeedState
from community_feed.modules.threads.services import tree as tree_ops

logger = logging.getLogger(__name__)

Listener = Callable[[FeedState], None]


def prepend_item(items: List[FeedItem], item: FeedItem) -> List[FeedItem]:
    return [item, *(existing for existing in items if existing.id != item.id)]


def merge_items(items: List[FeedItem], page: Iterable[FeedItem]) -> List[FeedItem]:
    """Append a page, dropping items that are already loaded"""
    seen = {item.id for item in items}
    return [*items, *(item for item in page if item.id not in seen)]


def patch_item(items: List[FeedItem], item_id: str, **changes: Any) -> List[FeedItem]:
    return [item.model_copy(update=changes) if item.id == item_id else item for item in items]


def remove_item(items: List[FeedItem], item_id: str) -> List[FeedItem]:
    return [item for item in items if item.id != item_id]


def own_fields(item: FeedItem) -> dict:
    """The server-owned fields of an item, ready to merge into a local copy"""
    return {name: getattr(item, name) for name in ITEM_OWN_FIELDS}


class FeedCollectionStore:
    def __init__(self, kind: ItemKind, backend: FeedBackend, page_size: int = settings.ITEMS_PAGE_SIZE):
        self.kind = kind
        self.backend = backend
        self.page_size = page_size
        self._state = FeedState(kind=kind)
        self._listeners: List[Listener] = []

    @property
    def state(self) -> FeedState:
        return self._state

    @property
    def items(self) -> List[FeedItem]:
        return self._state.items

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Call listener with every new state; returns the unsubscribe function"""
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def commit(self, **changes: Any) -> FeedState:
        self._state = self._state.model_copy(update=changes)
        for listener in list(self._listeners):
            try:
                listener(self._state)
            except Exception:
                logger.exception(f"{self.kind.value} listener failed")
        return self._state

    # Lookups

    def get_item(self, item_id: str) -> Optional[FeedItem]:
        for item in self._state.items:
            if item.id == item_id:
                return item
        return None

    def require_item(self, item_id: str) -> FeedItem:
        item = self.get_item(item_id)
        if item is None:
            raise NotFoundError(f"{self.kind.value} item {item_id} is not loaded")
        return item

    def update_item(self, item_id: str, fn: Callable[[FeedItem], FeedItem]) -> FeedItem:
        """Replace one item with fn(item) and commit; NotFoundError if it is gone"""
        item = self.require_item(item_id)
        updated = fn(item)
        if updated is not item:
            self.commit(items=[updated if existing.id == item_id else existing for existing in self._state.items])
        return updated

    def find_comment_owner(self, comment_id: str) -> Optional[FeedItem]:
        """The item whose loaded thread contains comment_id"""
        for item in self._state.items:
            if item.comments and tree_ops.find_node(item.comments, comment_id) is not None:
                return item
        return None

    # List operations

    async def fetch_items(self, page: int = 1, limit: Optional[int] = None, append: bool = False) -> FeedState:
        """Load a page; page 1 without append replaces the collection"""
        append = append or page > 1
        self.commit(
            loading=not append or self._state.loading,
            loading_more=append or self._state.loading_more,
            error=None,
        )
        logger.debug(f"Fetching {self.kind.value} page {page}")
        try:
            result = await self.backend.fetch_items(page, limit or self.page_size)
        except BackendError as e:
            logger.warning(f"Failed to fetch {self.kind.value} page {page}: {e}")
            self.commit(loading=False, loading_more=False, error=str(e))
            raise

        items = merge_items(self._state.items, result.items) if append else result.items
        return self.commit(
            items=items, total=result.total, current_page=result.page, loading=False, loading_more=False,
        )

    async def load_more_items(self) -> FeedState:
        """Fetch the next page; no-op while a fetch is running or when everything is loaded"""
        state = self._state
        if state.loading or state.loading_more or not state.has_more:
            return state
        return await self.fetch_items(page=state.current_page + 1, append=True)

    async def create_item(self, content: str, media_urls: Optional[List[str]] = None) -> FeedItem:
        try:
            item = await self.backend.create_item(content, media_urls or [])
        except BackendError as e:
            self.commit(error=str(e))
            raise

        is_new = self.get_item(item.id) is None
        self.commit(
            items=prepend_item(self._state.items, item),
            total=self._state.total + 1 if is_new else self._state.total,
        )
        logger.info(f"Created {self.kind.value} item {item.id}")
        return item

    async def edit_item(self, item_id: str, content: str, media_urls: Optional[List[str]] = None) -> Optional[FeedItem]:
        self.require_item(item_id)
        self.commit(items=patch_item(self._state.items, item_id, is_editing=True), edit_error=None)
        try:
            updated = await self.backend.update_item(item_id, content, media_urls)
        except BackendError as e:
            logger.warning(f"Failed to edit {self.kind.value} item {item_id}: {e}")
            self.commit(items=patch_item(self._state.items, item_id, is_editing=False), edit_error=str(e))
            raise

        if self.get_item(item_id) is None:
            logger.info(f"{self.kind.value} item {item_id} was removed before its edit completed")
            return None
        self.commit(items=patch_item(self._state.items, item_id, is_editing=False, **own_fields(updated)))
        return self.get_item(item_id)

    async def delete_item(self, item_id: str) -> None:
        self.require_item(item_id)
        self.commit(items=patch_item(self._state.items, item_id, is_deleting=True), delete_error=None)
        try:
            await self.backend.delete_item(item_id)
        except BackendError as e:
            logger.warning(f"Failed to delete {self.kind.value} item {item_id}: {e}")
            self.commit(items=patch_item(self._state.items, item_id, is_deleting=False), delete_error=str(e))
            raise

        if self.get_item(item_id) is None:
            return
        self.commit(items=remove_item(self._state.items, item_id), total=max(0, self._state.total - 1))

    def clear_errors(self) -> FeedState:
        return self.commit(error=None, edit_error=None, delete_error=None, comment_error=None)

    def reset(self) -> FeedState:
        """Forget every loaded item, e.g. when the viewer changes"""
        return self.commit(items=[], total=0, current_page=0, loading=False, loading_more=False)
