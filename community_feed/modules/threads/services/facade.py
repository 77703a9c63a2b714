from typing import Callable, Dict, Optional
import logging

import httpx

from community_feed.core.kinds import ItemKind
from community_feed.modules.threads.client.backend import FeedBackend, HttpFeedBackend, build_client
from community_feed.modules.threads.schemas.thread import Author
from community_feed.modules.threads.services.controller import ThreadController
from community_feed.modules.threads.services.store import FeedCollectionStore

logger = logging.getLogger(__name__)

BackendFactory = Callable[[ItemKind], FeedBackend]


class FeedChannel:
    """Store and thread controller for one item kind"""

    def __init__(self, kind: ItemKind, backend: FeedBackend, viewer: Optional[Author] = None):
        self.kind = kind
        self.store = FeedCollectionStore(kind, backend)
        self.threads = ThreadController(self.store, backend, viewer=viewer)


class CommunityFeed:
    """
    The whole client: one channel each for posts, announcements and feedback,
    all with the same contract.

    Create it once per session. Used as an async context manager it closes the
    HTTP client it was given ownership of.
    """

    def __init__(
        self,
        backend_factory: BackendFactory,
        viewer: Optional[Author] = None,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.viewer = viewer
        self._client = client
        self.channels: Dict[ItemKind, FeedChannel] = {
            kind: FeedChannel(kind, backend_factory(kind), viewer=viewer) for kind in ItemKind
        }

    @classmethod
    def connect(cls, base_url: Optional[str] = None, viewer: Optional[Author] = None, **client_kwargs) -> "CommunityFeed":
        """Build a feed talking to the JSON API through one shared client"""
        client = build_client(base_url, user_id=viewer.user_id if viewer else None, **client_kwargs)
        logger.info(f"Connecting community feed to {client.base_url}")
        return cls(lambda kind: HttpFeedBackend(client, kind), viewer=viewer, client=client)

    def channel(self, kind: ItemKind) -> FeedChannel:
        return self.channels[ItemKind(kind)]

    __getitem__ = channel

    @property
    def posts(self) -> FeedChannel:
        return self.channels[ItemKind.POST]

    @property
    def announcements(self) -> FeedChannel:
        return self.channels[ItemKind.ANNOUNCEMENT]

    @property
    def feedback(self) -> FeedChannel:
        return self.channels[ItemKind.FEEDBACK]

    async def aclose(self) -> None:
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def __aenter__(self) -> "CommunityFeed":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()
