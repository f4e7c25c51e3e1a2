"""Exception types shared by the feed pipeline and the notices store."""


class TransitError(Exception):
    """Base class for every error raised by transit_board."""


class FeedConfigError(TransitError):
    """A feed is missing its endpoint, credential or target stops."""


class FeedFetchError(TransitError):
    """The feed endpoint could not deliver a usable body."""


class FeedTimeoutError(FeedFetchError):
    pass


class FeedNetworkError(FeedFetchError):
    pass


class FeedHTTPError(FeedFetchError):
    def __init__(self, status_code: int, url: str) -> None:
        super().__init__(f"HTTP {status_code} from {url}")
        self.status_code = status_code
        self.url = url


class EmptyFeedError(FeedFetchError):
    pass


class FeedDecodeError(TransitError):
    """The body is not a valid GTFS-Realtime FeedMessage."""


class NoticeStoreError(TransitError):
    """The notices row store is unavailable or rejected the operation."""


class NoticeNotFoundError(NoticeStoreError):
    def __init__(self, notice_id: str) -> None:
        super().__init__(f"Notice {notice_id} not found")
        self.notice_id = notice_id
