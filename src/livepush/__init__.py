"""livepush: live orienteering results with push notifications for followed runners."""

from livepush.cache import SnapshotCache
from livepush.client import LiveResultsClient
from livepush.diff import diff_results
from livepush.exceptions import (
    DeliveryError,
    InvalidQueryError,
    InvalidTokenError,
    LivePushError,
    StoreError,
    UnknownStatusError,
    UpstreamAPIError,
    UpstreamConnectionError,
    UpstreamDecodeError,
    UpstreamError,
    UpstreamTimeoutError,
)
from livepush.fetch import Changed, FetchFailed, FetchResult, Unchanged
from livepush.followers import FollowerIndex
from livepush.notifications import NotificationDispatcher
from livepush.queries import QueryKind

__all__ = [
    "Changed",
    "DeliveryError",
    "FetchFailed",
    "FetchResult",
    "FollowerIndex",
    "InvalidQueryError",
    "InvalidTokenError",
    "LivePushError",
    "LiveResultsClient",
    "NotificationDispatcher",
    "QueryKind",
    "SnapshotCache",
    "StoreError",
    "Unchanged",
    "UnknownStatusError",
    "UpstreamAPIError",
    "UpstreamConnectionError",
    "UpstreamDecodeError",
    "UpstreamError",
    "UpstreamTimeoutError",
    "diff_results",
]

__version__ = "0.1.0"
