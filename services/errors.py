NO_MATCH_MESSAGE = (
    "Couldn't match this page to an Overcast episode. "
    "Try a page with a clear episode title."
)


class ResolutionError(Exception):
    """Base class for failures surfaced by episode resolution."""


class RateLimitedError(ResolutionError):
    """Overcast answered HTTP 429. Resolution stops; nothing is retried."""

    def __init__(self, url: str):
        self.url = url
        super().__init__(f"Overcast rate limited the request (HTTP 429): {url}")


class NoMatchError(ResolutionError):
    def __init__(self, reason: str = ""):
        self.reason = reason
        super().__init__(NO_MATCH_MESSAGE)


class TransportError(ResolutionError):
    """A non-429 failing response where the caller cannot just skip it."""

    def __init__(self, url: str, status: int, message: str = ""):
        self.url = url
        self.status = status
        super().__init__(message or f"HTTP {status} from {url}")
