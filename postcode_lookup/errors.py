"""Exception types shared by the lookup service."""


class PostcodeLookupError(Exception):
    """Base class for errors raised inside the lookup service."""


class UpstreamError(PostcodeLookupError):
    """An external API could not be reached or answered unexpectedly."""


class PlacesSearchError(UpstreamError):
    """The places search failed; callers degrade to an empty contribution."""


class AccessDenied(PostcodeLookupError):
    """A request was rejected by the access-control layer."""

    def __init__(self, status_code: int, message: str, headers: dict[str, str] | None = None):
        super().__init__(message)
        self.status_code = status_code
        self.message = message
        self.headers = headers


class RequestTooLarge(PostcodeLookupError):
    """A JSON request body exceeded the configured size limit."""

    def __init__(self, limit: int):
        super().__init__(f"Request body larger than {limit} bytes")
        self.limit = limit
