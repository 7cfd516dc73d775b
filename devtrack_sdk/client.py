"""
Typed REST client shared by the TeamCity, YouTrack and GitLab wrappers.

One instance talks to one service: the base URL and bearer token are fixed
when the client is constructed, and every call performs exactly one request.
"""

import json
import logging
from typing import Any, Optional, Type, TypeVar

import requests
from pydantic import BaseModel, TypeAdapter, ValidationError

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ClientError(Exception):
    """Base exception for the devtrack SDK."""

    pass


class TransportError(ClientError):
    """The request never produced an HTTP response (DNS, connect, TLS, timeout)."""

    def __init__(self, message: str, url: Optional[str] = None):
        super().__init__(message)
        self.url = url


class HttpStatusError(ClientError):
    """The server answered with a non-2xx status."""

    def __init__(self, message: str, status_code: int, body: str = "", url: Optional[str] = None):
        super().__init__(message)
        self.status_code = status_code
        self.body = body
        self.url = url


class AuthenticationError(HttpStatusError):
    """The server rejected the bearer token."""

    pass


class DecodeError(ClientError):
    """A 2xx response whose body does not match the expected shape."""

    def __init__(self, message: str, body: str = "", url: Optional[str] = None):
        super().__init__(message)
        self.body = body
        self.url = url


class RestClient:
    """Authenticated JSON client bound to a single base URL."""

    def __init__(self, base_url: str, token: str, timeout: Optional[float] = None):
        """
        Initialize the client.

        Args:
            base_url: Base URL every relative path is resolved against
            token: Bearer token sent with every request
            timeout: Optional request timeout in seconds
        """
        self.base_url = str(base_url).rstrip("/")
        self.timeout = timeout
        self.session = requests.Session()
        self.session.headers["Authorization"] = f"Bearer {token}"
        self.session.headers["Accept"] = "application/json"
        self.session.headers["Content-Type"] = "application/json"

    def resolve(self, path: str) -> str:
        """Resolve a path against the base URL; absolute URLs pass through."""
        if path.startswith(("http://", "https://")):
            return path
        return f"{self.base_url}/{path.lstrip('/')}"

    def get(self, path: str, response_type: Type[T]) -> T:
        """
        Issue a GET request and decode the JSON body.

        Args:
            path: Path relative to the base URL (may carry a query string)
            response_type: Pydantic model or type accepted by a TypeAdapter

        Returns:
            The decoded response
        """
        url = self.resolve(path)
        logger.debug(f"GET {url}")
        return self._send("GET", url, response_type)

    def post(self, path: str, body: Any, response_type: Type[T]) -> T:
        """
        Issue a POST request with a JSON body and decode the JSON response.

        Args:
            path: Path relative to the base URL (may carry a query string)
            body: Pydantic model or JSON-serializable value
            response_type: Pydantic model or type accepted by a TypeAdapter

        Returns:
            The decoded response
        """
        url = self.resolve(path)
        payload = _to_jsonable(body)
        logger.debug(f"POST {url}\n{json.dumps(payload, indent=2, ensure_ascii=False)}")
        return self._send("POST", url, response_type, data=json.dumps(payload))

    def _send(self, method: str, url: str, response_type: Type[T], **kwargs: Any) -> T:
        try:
            response = self.session.request(method, url, timeout=self.timeout, **kwargs)
        except requests.RequestException as e:
            raise TransportError(f"{method} {url} failed: {e}", url=url) from e

        if response.status_code == 401:
            raise AuthenticationError(
                "Authentication failed. Token may be expired.",
                response.status_code,
                response.text,
                url=url,
            )
        if not 200 <= response.status_code < 300:
            raise HttpStatusError(
                f"{method} {url} returned {response.status_code}: {response.text[:200]}",
                response.status_code,
                response.text,
                url=url,
            )

        return decode(response.text, response_type, url=url)


def decode(text: str, response_type: Type[T], url: Optional[str] = None) -> T:
    """Decode a JSON document into ``response_type``."""
    try:
        if isinstance(response_type, type) and issubclass(response_type, BaseModel):
            return response_type.model_validate_json(text)  # type: ignore[return-value]
        return TypeAdapter(response_type).validate_json(text)
    except ValidationError as e:
        raise DecodeError(f"Unexpected response from {url}: {e}", body=text, url=url) from e
    except ValueError as e:
        raise DecodeError(f"Response from {url} is not JSON: {e}", body=text, url=url) from e


def _to_jsonable(body: Any) -> Any:
    if isinstance(body, BaseModel):
        return body.model_dump(mode="json", by_alias=True, exclude_none=True)
    return body
