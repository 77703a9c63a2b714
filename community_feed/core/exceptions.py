# Error taxonomy shared by the feed store, the thread controller and the
# HTTP backend client. Every failure here is scoped to one item or thread.

from typing import Optional


class FeedError(Exception):
    """Base class for every error raised by the feed client"""


class ValidationError(FeedError):
    """Rejected locally before any request was issued"""


class NotFoundError(FeedError):
    """The target item or comment is no longer present locally"""


class BackendError(FeedError):
    """A request to the backend did not succeed"""


class NetworkError(BackendError):
    """The transport failed (connection refused, timeout, reset...)"""


class ServerError(BackendError):
    """The backend answered with an error status or an unreadable body"""

    def __init__(self, detail: str, status_code: Optional[int] = None):
        super().__init__(detail)
        self.detail = detail
        self.status_code = status_code

    def __str__(self) -> str:
        if self.status_code is None:
            return self.detail
        return f"{self.status_code}: {self.detail}"
