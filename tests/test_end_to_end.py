"""
The client against the reference API, wired in process through httpx's ASGI
transport.
"""
import httpx
import pytest

from community_feed.core.exceptions import ServerError, ValidationError
from community_feed.core.kinds import ItemKind
from community_feed.modules.threads.schemas.thread import Author, ThreadStatus
from community_feed.modules.threads.services import tree as tree_ops
from community_feed.modules.threads.services.facade import CommunityFeed


def _connect(app, user_id):
    return CommunityFeed.connect(
        base_url="http://testserver/api/v1",
        viewer=Author(user_id=user_id, name=user_id.title()),
        transport=httpx.ASGITransport(app=app),
    )


@pytest.fixture
async def alice(api_app):
    async with _connect(api_app, "alice") as feed:
        yield feed


@pytest.fixture
async def bob(api_app):
    async with _connect(api_app, "bob") as feed:
        yield feed


async def test_channels_per_kind(alice):
    assert alice.posts.kind == ItemKind.POST
    assert alice["announcements"] is alice.announcements
    assert alice.channel(ItemKind.FEEDBACK) is alice.feedback


async def test_post_thread_lifecycle(alice, bob):
    post = await alice.posts.store.create_item("what are we building?")
    await bob.posts.store.fetch_items()
    threads = bob.posts.threads

    view = await threads.open_thread(post.id)
    assert view.status == ThreadStatus.READY
    assert view.comments == []

    top = await threads.create_comment(post.id, "a community feed")
    reply = await threads.create_comment(post.id, "with threads", parent_comment_id=top.id)
    assert threads.thread(post.id).comments_count == 2

    with pytest.raises(ValidationError):
        await threads.create_comment(post.id, "too deep", parent_comment_id=reply.id)

    edited = await threads.edit_comment(top.id, "a community feed, in Python")
    assert edited.content == "a community feed, in Python"
    assert [node.id for node in edited.replies] == [reply.id]

    await threads.delete_comment(top.id)
    view = threads.thread(post.id)
    assert view.comments == []
    assert view.comments_count == 0


async def test_late_joiner_sees_reconciled_count(alice, bob):
    post = await alice.posts.store.create_item("hello")
    top = await alice.posts.threads.create_comment(post.id, "first")
    await alice.posts.threads.create_comment(post.id, "second", parent_comment_id=top.id)

    await bob.posts.store.fetch_items()
    assert bob.posts.store.get_item(post.id).comments_count == 2

    view = await bob.posts.threads.open_thread(post.id)
    assert view.comments_count == 2
    assert tree_ops.count_all(view.comments) == 2


async def test_likes_round_trip(alice, bob):
    post = await alice.feedback.store.create_item("more dark mode")
    await bob.feedback.store.fetch_items()

    state = await bob.feedback.threads.toggle_like(post.id)

    assert state.is_liked is True
    assert bob.feedback.store.get_item(post.id).likes_count == 1


async def test_forbidden_edit_surfaces_server_error(alice, bob):
    post = await alice.announcements.store.create_item("office closed friday")
    await bob.announcements.store.fetch_items()

    with pytest.raises(ServerError) as excinfo:
        await bob.announcements.store.edit_item(post.id, "office open friday")

    assert excinfo.value.status_code == 403
    item = bob.announcements.store.get_item(post.id)
    assert item.content == "office closed friday"
    assert item.is_editing is False


async def test_delete_item(alice):
    post = await alice.posts.store.create_item("temporary")

    await alice.posts.store.delete_item(post.id)

    await alice.posts.store.fetch_items()
    assert alice.posts.store.get_item(post.id) is None
