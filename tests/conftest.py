"""
Common test fixtures.

Client-side tests run against FakeBackend, an in-memory FeedBackend that
records every call and can be told to fail or to hold a request open.
API tests run the FastAPI app over an in-memory SQLite database.
"""
import asyncio
import itertools
import os
from datetime import datetime, timedelta
from typing import Dict, List, Optional

os.environ.setdefault("DATABASE_URL", "sqlite://")

import pytest
from fastapi.testclient import TestClient
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from community_feed.core.exceptions import NetworkError
from community_feed.core.kinds import ItemKind
from community_feed.db.init_db import create_all_tables
from community_feed.db.session import build_engine, get_db
from community_feed.main import app
from community_feed.modules.threads.schemas.thread import (
    Author, CommentNode, CommentPage, FeedItem, ItemPage, LikeState, Pagination
)
from community_feed.modules.threads.services.controller import ThreadController
from community_feed.modules.threads.services.store import FeedCollectionStore
from community_feed.modules.user_management.schemas.user import UserCreate
from community_feed.modules.user_management.services.user import create_user

BASE_TIME = datetime(2024, 5, 1, 12, 0, 0)


def make_node(node_id, content="hello", replies=(), parent=None, item_id="item-1", **fields):
    return CommentNode(
        id=node_id,
        item_id=item_id,
        user_id=fields.pop("user_id", "u1"),
        author=fields.pop("author", Author(user_id="u1", name="Una")),
        content=content,
        created_at=BASE_TIME,
        updated_at=BASE_TIME,
        parent_comment_id=parent,
        replies=list(replies),
        **fields,
    )


def make_item(item_id="item-1", kind=ItemKind.POST, **fields):
    fields.setdefault("content", f"body of {item_id}")
    return FeedItem(id=item_id, kind=kind, created_at=BASE_TIME, author=Author(user_id="u1", name="Una"), **fields)


def make_page(nodes, page=1, has_next_page=False, total=None, total_with_replies=None, limit=20):
    return CommentPage(
        comments=list(nodes),
        pagination=Pagination(
            page=page,
            limit=limit,
            total=len(nodes) if total is None else total,
            total_with_replies=total_with_replies,
            total_pages=page + 1 if has_next_page else page,
            has_next_page=has_next_page,
            has_prev_page=page > 1,
        ),
    )


class FakeBackend:
    def __init__(self, kind: ItemKind = ItemKind.POST):
        self.kind = kind
        self.calls: List[tuple] = []
        self.item_pages: Dict[int, ItemPage] = {}
        self.comment_pages: Dict[tuple, CommentPage] = {}
        self.comment_counts: Dict[str, int] = {}
        self.likes: Dict[str, LikeState] = {}
        self.failures: Dict[str, Exception] = {}
        self.holds: Dict[str, asyncio.Event] = {}
        self.omit_author = False
        self.author = Author(user_id="u1", name="Una")
        self._ids = itertools.count(1)
        self._comments: Dict[str, CommentNode] = {}

    def fail(self, method: str, error: Optional[Exception] = None) -> None:
        """Make the next call to method raise"""
        self.failures[method] = error or NetworkError("connection reset")

    def hold(self, method: str) -> asyncio.Event:
        """Keep calls to method pending until the returned event is set"""
        event = asyncio.Event()
        self.holds[method] = event
        return event

    def call_names(self) -> List[str]:
        return [call[0] for call in self.calls]

    async def _enter(self, method: str, *args) -> None:
        self.calls.append((method, *args))
        if method in self.holds:
            await self.holds[method].wait()
        if method in self.failures:
            raise self.failures.pop(method)

    def _remember(self, nodes) -> None:
        for node in nodes:
            self._comments[node.id] = node
            self._remember(node.replies)

    async def fetch_items(self, page, limit):
        await self._enter("fetch_items", page, limit)
        return self.item_pages[page]

    async def create_item(self, content, media_urls=None):
        await self._enter("create_item", content, media_urls)
        return make_item(f"new-item-{next(self._ids)}", kind=self.kind, content=content, media_urls=media_urls or [])

    async def update_item(self, item_id, content, media_urls=None):
        await self._enter("update_item", item_id, content, media_urls)
        return make_item(item_id, kind=self.kind, content=content, media_urls=media_urls or [], likes_count=7)

    async def delete_item(self, item_id):
        await self._enter("delete_item", item_id)

    async def toggle_like(self, item_id):
        await self._enter("toggle_like", item_id)
        current = self.likes.get(item_id, LikeState(is_liked=False, likes_count=0))
        delta = -1 if current.is_liked else 1
        state = LikeState(is_liked=not current.is_liked, likes_count=current.likes_count + delta)
        self.likes[item_id] = state
        return state

    async def fetch_comments(self, item_id, page, limit, include_replies=True):
        await self._enter("fetch_comments", item_id, page, limit, include_replies)
        result = self.comment_pages[(item_id, page)]
        self._remember(result.comments)
        return result

    async def create_comment(self, item_id, content, parent_comment_id=None):
        await self._enter("create_comment", item_id, content, parent_comment_id)
        node = make_node(
            f"new-{next(self._ids)}",
            content=content,
            parent=parent_comment_id,
            item_id=item_id,
            author=None if self.omit_author else self.author,
            user_id=None if self.omit_author else self.author.user_id,
        )
        self._remember([node])
        return node

    async def update_comment(self, comment_id, content):
        await self._enter("update_comment", comment_id, content)
        node = self._comments.get(comment_id) or make_node(comment_id)
        return node.model_copy(update={
            "content": content,
            "updated_at": BASE_TIME + timedelta(minutes=5),
            "is_edited": True,
            "replies": [],
        })

    async def delete_comment(self, comment_id):
        await self._enter("delete_comment", comment_id)

    async def fetch_comment_count(self, item_id):
        await self._enter("fetch_comment_count", item_id)
        return self.comment_counts[item_id]


@pytest.fixture
def backend():
    return FakeBackend()


@pytest.fixture
def viewer():
    return Author(user_id="me", name="Me Myself", email="me@example.com")


@pytest.fixture
def store(backend):
    store = FeedCollectionStore(ItemKind.POST, backend)
    store.commit(items=[make_item("item-1", comments_count=3), make_item("item-2")], total=2, current_page=1)
    return store


@pytest.fixture
def controller(store, backend, viewer):
    return ThreadController(store, backend, viewer=viewer)


@pytest.fixture
def thread_page():
    """Page 1 of item-1: c1 with replies r1 and r2, plus c2"""
    return make_page(
        [
            make_node("c1", "first", replies=[make_node("r1", "reply one", parent="c1"),
                                              make_node("r2", "reply two", parent="c1")], has_replies=True),
            make_node("c2", "second"),
        ],
        has_next_page=True,
        total=3,
        total_with_replies=5,
    )


# API

@pytest.fixture
def db_engine():
    engine = build_engine("sqlite://", poolclass=StaticPool)
    create_all_tables(engine)
    yield engine
    engine.dispose()


@pytest.fixture
def db_session_factory(db_engine):
    return sessionmaker(autocommit=False, autoflush=False, bind=db_engine)


@pytest.fixture
def users(db_session_factory):
    """Seed two users, alice and bob"""
    db = db_session_factory()
    try:
        for user_id in ("alice", "bob"):
            create_user(db, UserCreate(id=user_id, name=user_id.title(), email=f"{user_id}@example.com"))
    finally:
        db.close()
    return ["alice", "bob"]


@pytest.fixture
def api_app(db_session_factory, users):
    def override_get_db():
        db = db_session_factory()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[get_db] = override_get_db
    yield app
    app.dependency_overrides.clear()


@pytest.fixture
def client(api_app):
    return TestClient(api_app)


@pytest.fixture
def as_alice():
    return {"X-User-Id": "alice"}


@pytest.fixture
def as_bob():
    return {"X-User-Id": "bob"}
