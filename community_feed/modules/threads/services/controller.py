"""
Thread controller: keeps each item's comment thread in step with the backend.

Per item the thread moves UNINITIALIZED -> LOADING -> READY, and back to
LOADING while a further page is fetched. A failed first load lands in FAILED,
which a later open_thread may retry.

Tree changes are applied only to server-confirmed data. The one optimistic
touch is the transient flag on a comment being edited or deleted, and it is
rolled back when the request fails. Responses that arrive after their item
or comment has gone are dropped.
"""

from typing import Callable, Optional
import logging

from community_feed.core.config import settings
from community_feed.core.exceptions import BackendError, NotFoundError, ValidationError
from community_feed.modules.threads.client.backend import FeedBackend
from community_feed.modules.threads.schemas.thread import (
    Author, CommentNode, FeedItem, LikeState, ThreadStatus, ThreadView
)
from community_feed.modules.threads.services import tree as tree_ops
from community_feed.modules.threads.services.store import FeedCollectionStore

logger = logging.getLogger(__name__)

ThreadListener = Callable[[ThreadView], None]


def thread_view(item: FeedItem) -> ThreadView:
    return ThreadView(
        item_id=item.id,
        status=item.thread_status,
        comments=item.comments or [],
        comments_count=item.comments_count,
        has_more=item.comments_has_more,
        loading=item.comments_loading,
        error=item.comments_error,
    )


class ThreadController:
    def __init__(
        self,
        store: FeedCollectionStore,
        backend: Optional[FeedBackend] = None,
        viewer: Optional[Author] = None,
        page_size: int = settings.COMMENTS_PAGE_SIZE,
    ):
        self.store = store
        self.backend = backend or store.backend
        self.viewer = viewer
        self.page_size = page_size

    # State access

    def thread(self, item_id: str) -> ThreadView:
        return thread_view(self.store.require_item(item_id))

    def watch(self, item_id: str, listener: ThreadListener) -> Callable[[], None]:
        """Call listener whenever the thread of item_id changes"""
        item = self.store.get_item(item_id)
        last = [thread_view(item) if item else None]

        def on_state(state) -> None:
            current = next((candidate for candidate in state.items if candidate.id == item_id), None)
            if current is None:
                return
            view = thread_view(current)
            if view != last[0]:
                last[0] = view
                listener(view)

        return self.store.subscribe(on_state)

    def _apply(self, item_id: str, fn: Callable[[FeedItem], FeedItem]) -> Optional[FeedItem]:
        """Update an item if it is still loaded; a vanished item makes this a no-op"""
        try:
            return self.store.update_item(item_id, fn)
        except NotFoundError:
            logger.info(f"Dropping update for {self.store.kind.value} item {item_id}, it is no longer loaded")
            return None

    def _fail(self, item_id: Optional[str], error: Exception, **item_changes) -> None:
        message = str(error)
        if item_id is not None:
            self._apply(item_id, lambda item: item.model_copy(update={**item_changes, "comments_error": message}))
        self.store.commit(comment_error=message)

    # Fetching

    async def open_thread(self, item_id: str) -> ThreadView:
        """Load the first page of comments unless the thread is loading or loaded"""
        item = self.store.require_item(item_id)
        if item.thread_status in (ThreadStatus.LOADING, ThreadStatus.READY):
            return thread_view(item)

        self._apply(item_id, lambda current: current.model_copy(update={
            "thread_status": ThreadStatus.LOADING, "comments_error": None,
        }))
        self.store.commit(comment_error=None)
        logger.debug(f"Opening thread for {self.store.kind.value} item {item_id}")
        try:
            page = await self.backend.fetch_comments(item_id, 1, self.page_size, include_replies=True)
        except BackendError as e:
            logger.warning(f"Failed to load comments for item {item_id}: {e}")
            self._fail(item_id, e, thread_status=ThreadStatus.FAILED, comments_initialized=True)
            raise

        updated = self._apply(item_id, lambda current: current.model_copy(update={
            "comments": page.comments,
            "thread_status": ThreadStatus.READY,
            "comments_initialized": True,
            "comments_page": page.pagination.page,
            "comments_has_more": page.pagination.has_next_page,
            "comments_count": page.pagination.reconciled_count,
        }))
        return thread_view(updated) if updated else ThreadView(item_id=item_id, status=ThreadStatus.READY)

    async def load_more(self, item_id: str) -> ThreadView:
        """Fetch the next page of top-level comments; no-op unless READY with more to load"""
        item = self.store.require_item(item_id)
        if item.thread_status != ThreadStatus.READY or not item.comments_has_more:
            return thread_view(item)

        next_page = item.comments_page + 1
        self._apply(item_id, lambda current: current.model_copy(update={
            "thread_status": ThreadStatus.LOADING, "comments_error": None,
        }))
        try:
            page = await self.backend.fetch_comments(item_id, next_page, self.page_size, include_replies=True)
        except BackendError as e:
            logger.warning(f"Failed to load comment page {next_page} for item {item_id}: {e}")
            still_loaded = self.store.get_item(item_id)
            if still_loaded is not None and still_loaded.comments is not None:
                self._fail(item_id, e, thread_status=ThreadStatus.READY)
            else:
                self._fail(item_id, e)
            raise

        def merge(current: FeedItem) -> FeedItem:
            if current.comments is None:
                # Thread was reloaded as unopened meanwhile, this page no longer fits
                return current
            return current.model_copy(update={
                "comments": tree_ops.merge_nodes(current.comments, page.comments),
                "thread_status": ThreadStatus.READY,
                "comments_page": page.pagination.page,
                "comments_has_more": page.pagination.has_next_page,
            })

        updated = self._apply(item_id, merge)
        return thread_view(updated) if updated else ThreadView(item_id=item_id, status=ThreadStatus.READY)

    async def refresh_comment_count(self, item_id: str) -> int:
        """Use the count already known for the item, asking the backend only when there is none"""
        item = self.store.require_item(item_id)
        if item.comments_initialized or item.comments_count:
            return item.comments_count

        try:
            count = await self.backend.fetch_comment_count(item_id)
        except BackendError as e:
            logger.error(f"Failed to fetch comment count for item {item_id}: {e}")
            raise

        self._apply(item_id, lambda current: current.model_copy(update={"comments_count": count}))
        return count

    # Mutations

    async def create_comment(self, item_id: str, content: str, parent_comment_id: Optional[str] = None) -> CommentNode:
        """Create a comment, or a reply to a top-level comment, once the server confirms it"""
        if not content or not content.strip():
            raise ValidationError("Comment content cannot be empty")

        item = self.store.require_item(item_id)
        if parent_comment_id is not None:
            parent = tree_ops.find_node(item.comments or [], parent_comment_id)
            if parent is None:
                raise ValidationError(f"Parent comment {parent_comment_id} does not exist")
            if not tree_ops.is_top_level(item.comments, parent_comment_id):
                raise ValidationError("Replies can only be added to top-level comments")

        self.store.commit(comment_error=None)
        try:
            created = await self.backend.create_comment(item_id, content.strip(), parent_comment_id)
        except BackendError as e:
            logger.warning(f"Failed to create comment on item {item_id}: {e}")
            self._fail(item_id, e)
            raise

        node = tree_ops.with_display_author(created, self.viewer)

        def insert(current: FeedItem) -> FeedItem:
            if current.comments is None:
                # Thread never opened: its first fetch will include this comment
                return current.model_copy(update={"comments_count": current.comments_count + 1})
            comments = current.comments
            parent_id = node.parent_comment_id or parent_comment_id
            if parent_id:
                comments = tree_ops.insert_reply(comments, parent_id, node)
            else:
                comments = tree_ops.prepend_node(comments, node)
            return current.model_copy(update={
                "comments": comments,
                "comments_initialized": True,
                "comments_count": tree_ops.count_all(comments),
            })

        self._apply(item_id, insert)
        return node

    async def edit_comment(self, comment_id: str, content: str) -> Optional[CommentNode]:
        """
        Flag the comment as being edited and send the change. The displayed
        content stays as it was until the server returns the new copy.
        """
        if not content or not content.strip():
            raise ValidationError("Comment content cannot be empty")

        owner = self.store.find_comment_owner(comment_id)
        if owner is None:
            logger.info(f"Ignoring edit of comment {comment_id}, it is not loaded")
            return None
        item_id = owner.id

        self._set_flag(item_id, comment_id, "is_editing", True)
        self.store.commit(comment_error=None)
        try:
            updated = await self.backend.update_comment(comment_id, content.strip())
        except BackendError as e:
            logger.warning(f"Failed to edit comment {comment_id}: {e}")
            self._set_flag(item_id, comment_id, "is_editing", False)
            self._fail(item_id, e)
            raise

        def replace(current: FeedItem) -> FeedItem:
            if current.comments is None:
                # Thread was reloaded as unopened meanwhile
                return current
            return current.model_copy(update={
                "comments": tree_ops.replace_node(current.comments, comment_id, updated),
            })

        result = self._apply(item_id, replace)
        if result is None or not result.comments:
            return None
        return tree_ops.find_node(result.comments, comment_id)

    async def delete_comment(self, comment_id: str) -> None:
        """Dim the comment while the delete is in flight, then drop it with its replies"""
        owner = self.store.find_comment_owner(comment_id)
        if owner is None:
            logger.info(f"Ignoring delete of comment {comment_id}, it is not loaded")
            return
        item_id = owner.id

        self._set_flag(item_id, comment_id, "is_deleting", True)
        self.store.commit(comment_error=None)
        try:
            await self.backend.delete_comment(comment_id)
        except BackendError as e:
            logger.warning(f"Failed to delete comment {comment_id}: {e}")
            self._set_flag(item_id, comment_id, "is_deleting", False)
            self._fail(item_id, e)
            raise

        def remove(current: FeedItem) -> FeedItem:
            if current.comments is None:
                return current
            before = current.comments
            after = tree_ops.remove_node(before, comment_id)
            if after is before:
                return current
            removed = tree_ops.count_all(before) - tree_ops.count_all(after)
            return current.model_copy(update={
                "comments": after,
                "comments_count": max(0, current.comments_count - removed),
            })

        self._apply(item_id, remove)

    async def toggle_like(self, item_id: str) -> LikeState:
        """Flip the viewer's like; the count shown is always the server's"""
        self.store.require_item(item_id)
        try:
            state = await self.backend.toggle_like(item_id)
        except BackendError as e:
            logger.warning(f"Failed to toggle like on item {item_id}: {e}")
            raise

        self._apply(item_id, lambda current: current.model_copy(update={
            "likes_count": state.likes_count, "is_liked": state.is_liked,
        }))
        return state

    def reset_transient_states(self) -> None:
        """Clear every in-flight flag, e.g. after requests were abandoned"""
        def clear(current: FeedItem) -> FeedItem:
            if not current.comments:
                return current
            return current.model_copy(update={"comments": tree_ops.clear_transient(current.comments)})

        for item in self.store.items:
            if item.comments:
                self._apply(item.id, clear)

    def _set_flag(self, item_id: str, comment_id: str, field: str, value: bool) -> None:
        def flag(current: FeedItem) -> FeedItem:
            if current.comments is None:
                return current
            return current.model_copy(update={
                "comments": tree_ops.set_transient(current.comments, comment_id, field, value),
            })

        self._apply(item_id, flag)
