"""Request/response context carried through the stage pipeline."""

import copy
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, Optional


class HTTPMethod(str, Enum):
    """HTTP methods supported by the client."""
    GET = "GET"
    POST = "POST"
    PUT = "PUT"
    PATCH = "PATCH"
    DELETE = "DELETE"
    HEAD = "HEAD"
    OPTIONS = "OPTIONS"

    def __str__(self) -> str:
        return self.value


@dataclass
class RequestMetadata:
    """Metadata appended by stages while a logical call moves through the pipeline.

    Fields are only ever set, never removed. The same object is carried
    across retries of one logical call.

    Attributes:
        correlation_id: Identifier attached by the correlation-id stage
        start_time: Clock reading when the call (or cache hit) started
        end_time: Clock reading when the last outcome was observed
        duration_ms: end_time - start_time, in milliseconds
        retry_attempt: Number of retries issued so far (0 on first pass)
        served_from_cache: Response came from the response cache
        served_from_in_flight: Response came from a coalesced in-flight call
    """

    correlation_id: Optional[str] = None
    start_time: Optional[float] = None
    end_time: Optional[float] = None
    duration_ms: Optional[float] = None
    retry_attempt: int = 0
    served_from_cache: bool = False
    served_from_in_flight: bool = False


@dataclass
class RequestContext:
    """Descriptor of one logical HTTP call.

    Immutable by convention except for ``headers`` (the correlation-id
    stage may add its header) and ``metadata``.

    Example:
        >>> ctx = RequestContext(HTTPMethod.GET, "https://api.example.com", "users/1")
        >>> ctx.url
        'https://api.example.com/users/1'
    """

    method: HTTPMethod
    base_url: str
    path: str
    headers: Dict[str, str] = field(default_factory=dict)
    body: Any = None
    options: Dict[str, Any] = field(default_factory=dict)
    allow_simultaneous_duplicates: bool = False
    metadata: RequestMetadata = field(default_factory=RequestMetadata)

    def __post_init__(self):
        if not isinstance(self.method, HTTPMethod):
            self.method = HTTPMethod(str(self.method).upper())

    @property
    def url(self) -> str:
        """Full request URL (absolute paths are used as-is)."""
        if "://" in self.path or not self.base_url:
            return self.path
        return f"{self.base_url.rstrip('/')}/{self.path.lstrip('/')}"

    @property
    def target(self) -> str:
        """Human readable ``METHOD url`` used in log messages."""
        return f"{self.method.value} {self.url}"


@dataclass
class ResponseContext:
    """Outcome of a transport call.

    ``request`` points back at the RequestContext this response is
    delivered for; later stages read metadata through it.
    """

    status: int
    status_text: str = ""
    headers: Dict[str, str] = field(default_factory=dict)
    body: Any = None
    request: Optional[RequestContext] = None

    @property
    def ok(self) -> bool:
        return 200 <= self.status < 400

    def bind(self, request: RequestContext) -> "ResponseContext":
        """Return a shallow copy delivered for another request."""
        bound = copy.copy(self)
        bound.headers = dict(self.headers)
        bound.request = request
        return bound


def default_request_key(request: RequestContext) -> str:
    """Cache / in-flight key: ``METHOD:base_url/path``."""
    return f"{request.method.value}:{request.base_url}/{request.path}"
