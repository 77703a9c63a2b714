from typing import Any, List, Optional, Protocol, Type, TypeVar
import logging

import httpx
from pydantic import BaseModel
from pydantic import ValidationError as PydanticValidationError

from community_feed.core.config import settings
from community_feed.core.exceptions import NetworkError, ServerError
from community_feed.core.kinds import ItemKind
from community_feed.modules.threads.schemas.thread import (
    CommentNode, CommentPage, FeedItem, ItemPage, LikeState
)

logger = logging.getLogger(__name__)

ModelT = TypeVar("ModelT", bound=BaseModel)


class FeedBackend(Protocol):
    """Remote operations for one item kind"""

    async def fetch_items(self, page: int, limit: int) -> ItemPage: ...

    async def create_item(self, content: str, media_urls: Optional[List[str]] = None) -> FeedItem: ...

    async def update_item(self, item_id: str, content: str, media_urls: Optional[List[str]] = None) -> FeedItem: ...

    async def delete_item(self, item_id: str) -> None: ...

    async def toggle_like(self, item_id: str) -> LikeState: ...

    async def fetch_comments(self, item_id: str, page: int, limit: int, include_replies: bool = True) -> CommentPage: ...

    async def create_comment(self, item_id: str, content: str, parent_comment_id: Optional[str] = None) -> CommentNode: ...

    async def update_comment(self, comment_id: str, content: str) -> CommentNode: ...

    async def delete_comment(self, comment_id: str) -> None: ...

    async def fetch_comment_count(self, item_id: str) -> int: ...


def build_client(
    base_url: Optional[str] = None, user_id: Optional[str] = None, **kwargs: Any
) -> httpx.AsyncClient:
    """AsyncClient pointed at the API prefix, carrying the identity header"""
    headers = dict(kwargs.pop("headers", None) or {})
    if user_id:
        headers[settings.USER_ID_HEADER] = user_id
    kwargs.setdefault("timeout", settings.HTTP_TIMEOUT_SECONDS)
    return httpx.AsyncClient(base_url=base_url or settings.API_BASE_URL, headers=headers, **kwargs)


def _error_detail(response: httpx.Response) -> str:
    try:
        body = response.json()
    except ValueError:
        return response.text or response.reason_phrase
    if isinstance(body, dict) and "detail" in body:
        detail = body["detail"]
        # FastAPI validation errors come back as a list of problems
        if isinstance(detail, list):
            return "; ".join(
                str(problem.get("msg", problem)) if isinstance(problem, dict) else str(problem)
                for problem in detail if problem
            )
        return str(detail)
    return str(body)


class HttpFeedBackend:
    """FeedBackend over the JSON API, one instance per kind sharing a client"""

    def __init__(self, client: httpx.AsyncClient, kind: ItemKind):
        self.client = client
        self.kind = kind

    async def _request(self, method: str, path: str, **kwargs: Any) -> Any:
        url = f"/{self.kind.value}{path}"
        logger.debug(f"{method} {url}")
        try:
            response = await self.client.request(method, url, **kwargs)
        except httpx.TransportError as e:
            logger.warning(f"{method} {url} failed: {e!r}")
            raise NetworkError(f"Could not reach the server: {e}") from e

        if response.is_error:
            try:
                detail = _error_detail(response)
            except Exception:
                logger.exception(f"Unreadable error body from {method} {url}")
                detail = response.reason_phrase or "Request failed"
            logger.warning(f"{method} {url} returned {response.status_code}: {detail}")
            raise ServerError(detail, status_code=response.status_code)

        if not response.content:
            return {}
        try:
            return response.json()
        except ValueError as e:
            raise ServerError("Malformed response body", status_code=response.status_code) from e

    @staticmethod
    def _parse(model: Type[ModelT], data: Any) -> ModelT:
        try:
            return model.model_validate(data)
        except PydanticValidationError as e:
            logger.error(f"Unexpected {model.__name__} payload: {e}")
            raise ServerError(f"Malformed {model.__name__} in response") from e

    async def fetch_items(self, page: int, limit: int) -> ItemPage:
        data = await self._request("GET", "", params={"page": page, "limit": limit})
        return self._parse(ItemPage, data)

    async def create_item(self, content: str, media_urls: Optional[List[str]] = None) -> FeedItem:
        data = await self._request("POST", "", json={"content": content, "media_urls": media_urls or []})
        return self._parse(FeedItem, data)

    async def update_item(self, item_id: str, content: str, media_urls: Optional[List[str]] = None) -> FeedItem:
        payload = {"content": content}
        if media_urls is not None:
            payload["media_urls"] = media_urls
        data = await self._request("PUT", f"/{item_id}", json=payload)
        return self._parse(FeedItem, data)

    async def delete_item(self, item_id: str) -> None:
        await self._request("DELETE", f"/{item_id}")

    async def toggle_like(self, item_id: str) -> LikeState:
        data = await self._request("POST", f"/{item_id}/toggle-like")
        return self._parse(LikeState, data)

    async def fetch_comments(self, item_id: str, page: int, limit: int, include_replies: bool = True) -> CommentPage:
        params = {"page": page, "limit": limit, "include_replies": str(include_replies).lower()}
        data = await self._request("GET", f"/{item_id}/comments", params=params)
        return self._parse(CommentPage, data)

    async def create_comment(self, item_id: str, content: str, parent_comment_id: Optional[str] = None) -> CommentNode:
        payload = {"content": content}
        if parent_comment_id:
            payload["parent_comment_id"] = parent_comment_id
        data = await self._request("POST", f"/{item_id}/comments", json=payload)
        return self._parse(CommentNode, data)

    async def update_comment(self, comment_id: str, content: str) -> CommentNode:
        data = await self._request("PUT", f"/comments/{comment_id}", json={"content": content})
        return self._parse(CommentNode, data)

    async def delete_comment(self, comment_id: str) -> None:
        await self._request("DELETE", f"/comments/{comment_id}")

    async def fetch_comment_count(self, item_id: str) -> int:
        data = await self._request("GET", f"/{item_id}/comments/count")
        if not isinstance(data, dict) or not isinstance(data.get("count"), int):
            raise ServerError("Malformed comment count in response")
        return data["count"]
