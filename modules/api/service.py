"""
Typed request executor.

Builds authenticated requests against the fixed API root, encodes bodies and
decodes responses with the shared date convention, and maps every outcome
into the APIError taxonomy.
"""

import errno
import inspect
import logging
import socket
from functools import lru_cache
from typing import Any, Callable, Iterator, Optional, Union

import httpx
from pydantic import TypeAdapter, ValidationError as PydanticValidationError

from shared.codec import encode_json
from shared.config import Settings, get_settings
from shared.models import APIErrorResponse
from modules.session.interfaces import ITokenProvider

from .interfaces import IAPIClient, QueryParams, UnauthorizedListener
from .models import HTTPMethod, NO_CONTENT
from .exceptions import (
    APIError,
    ConflictError,
    DecodingFailedError,
    EncodingFailedError,
    ForbiddenError,
    InvalidURLError,
    NetworkUnavailableError,
    NoDataError,
    RequestTimeoutError,
    ServerError,
    ServerUnavailableError,
    UnauthorizedError,
    UnknownAPIError,
)

logger = logging.getLogger(__name__)

# errno values that mean "this device is offline" rather than "server down"
_OFFLINE_ERRNOS = {errno.ENETUNREACH, errno.ENETDOWN}


@lru_cache(maxsize=256)
def _type_adapter(response_model: Any) -> TypeAdapter:
    return TypeAdapter(response_model)


def _causes(exc: BaseException) -> Iterator[BaseException]:
    seen: set[int] = set()
    current: Optional[BaseException] = exc
    while current is not None and id(current) not in seen:
        seen.add(id(current))
        yield current
        current = current.__cause__ or current.__context__


def classify_connect_error(exc: httpx.ConnectError) -> APIError:
    """
    Tell "no connectivity" apart from "server unreachable".

    httpx wraps the underlying OSError, so the cause chain is inspected for
    a DNS failure or an offline errno.
    """
    reason = str(exc) or type(exc).__name__
    for cause in _causes(exc):
        if isinstance(cause, socket.gaierror):
            return ServerUnavailableError(reason)
        if isinstance(cause, OSError) and cause.errno in _OFFLINE_ERRNOS:
            return NetworkUnavailableError(reason)

    lowered = reason.lower()
    if "network is unreachable" in lowered or "network is down" in lowered:
        return NetworkUnavailableError(reason)
    return ServerUnavailableError(reason)


class APIClient(IAPIClient):
    """
    Implementation of the request executor over httpx.

    The only implicit side effect of a call is the unauthorized event,
    emitted on a 401 (or a missing token) for authenticated calls.
    Whoever owns the session subscribes to it with on_unauthorized.

    Args:
        token_provider: Source of the bearer token (the session store)
        settings: Settings providing api_base_url and request_timeout
        http_client: Optional preconfigured httpx.AsyncClient. When omitted,
                     the executor creates and owns one.
    """

    def __init__(
        self,
        token_provider: ITokenProvider,
        settings: Optional[Settings] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self._settings = settings or get_settings()
        self._tokens = token_provider
        self._base_url = self._settings.api_base_url.rstrip("/")
        self._owns_http = http_client is None
        self._http = http_client or httpx.AsyncClient(timeout=self._settings.request_timeout)
        self._unauthorized_listeners: list[UnauthorizedListener] = []

    @property
    def base_url(self) -> str:
        return self._base_url

    async def aclose(self) -> None:
        if self._owns_http:
            await self._http.aclose()

    async def __aenter__(self) -> "APIClient":
        return self

    async def __aexit__(self, *exc_info) -> None:
        await self.aclose()

    # ------------------------------------------------------------------
    # Unauthorized event
    # ------------------------------------------------------------------

    def on_unauthorized(self, listener: UnauthorizedListener) -> Callable[[], None]:
        self._unauthorized_listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._unauthorized_listeners:
                self._unauthorized_listeners.remove(listener)

        return unsubscribe

    async def _emit_unauthorized(self) -> None:
        for listener in list(self._unauthorized_listeners):
            try:
                result = listener()
                if inspect.isawaitable(result):
                    await result
            except Exception:
                logger.exception("Unauthorized listener failed")

    # ------------------------------------------------------------------
    # Verbs
    # ------------------------------------------------------------------

    async def get(
        self,
        path: str,
        *,
        params: Optional[QueryParams] = None,
        response_model: Any = None,
        authenticated: bool = True,
    ) -> Any:
        return await self.request(
            HTTPMethod.GET, path,
            params=params, response_model=response_model, authenticated=authenticated,
        )

    async def post(
        self,
        path: str,
        body: Any = None,
        *,
        params: Optional[QueryParams] = None,
        response_model: Any = None,
        authenticated: bool = True,
    ) -> Any:
        return await self.request(
            HTTPMethod.POST, path,
            body=body, params=params, response_model=response_model, authenticated=authenticated,
        )

    async def put(
        self,
        path: str,
        body: Any = None,
        *,
        params: Optional[QueryParams] = None,
        response_model: Any = None,
        authenticated: bool = True,
    ) -> Any:
        return await self.request(
            HTTPMethod.PUT, path,
            body=body, params=params, response_model=response_model, authenticated=authenticated,
        )

    async def patch(
        self,
        path: str,
        body: Any = None,
        *,
        params: Optional[QueryParams] = None,
        response_model: Any = None,
        authenticated: bool = True,
    ) -> Any:
        return await self.request(
            HTTPMethod.PATCH, path,
            body=body, params=params, response_model=response_model, authenticated=authenticated,
        )

    async def delete(
        self,
        path: str,
        *,
        params: Optional[QueryParams] = None,
        response_model: Any = None,
        authenticated: bool = True,
    ) -> Any:
        return await self.request(
            HTTPMethod.DELETE, path,
            params=params, response_model=response_model, authenticated=authenticated,
        )

    # ------------------------------------------------------------------
    # Core request logic
    # ------------------------------------------------------------------

    def build_url(self, path: str, params: Optional[QueryParams] = None) -> httpx.URL:
        """
        Join the API root, the endpoint path and the query parameters.

        Raises:
            InvalidURLError: If the result is not an absolute http(s) URL
        """
        if not path.startswith("/"):
            path = "/" + path
        raw = f"{self._base_url}{path}"
        try:
            url = httpx.URL(raw)
            if params:
                url = url.copy_merge_params(params)
        except (httpx.InvalidURL, TypeError, ValueError) as e:
            raise InvalidURLError(raw) from e
        if url.scheme not in ("http", "https") or not url.host:
            raise InvalidURLError(raw)
        return url

    async def request(
        self,
        method: Union[HTTPMethod, str],
        path: str,
        *,
        body: Any = None,
        params: Optional[QueryParams] = None,
        response_model: Any = None,
        authenticated: bool = True,
    ) -> Any:
        try:
            verb = HTTPMethod(method.upper() if isinstance(method, str) else method)
        except ValueError as e:
            raise UnknownAPIError(f"Unsupported HTTP method: {method}") from e

        headers = {
            "Content-Type": "application/json",
            "Accept": "application/json",
        }
        if authenticated:
            token = self._tokens.current_token()
            if not token:
                logger.warning(f"No auth token for {verb.value} {path}, user needs to log in")
                await self._emit_unauthorized()
                raise UnauthorizedError()
            headers["Authorization"] = f"Bearer {token}"

        url = self.build_url(path, params)

        content: Optional[bytes] = None
        if body is not None:
            try:
                content = encode_json(body)
            except (TypeError, ValueError) as e:
                raise EncodingFailedError(str(e)) from e

        logger.debug(f"Requesting {verb.value} {url}")
        response = await self._send(verb, url, content, headers)
        logger.debug(f"Received status {response.status_code} for {verb.value} {url}")

        return await self._handle_response(response, response_model, authenticated)

    async def _send(
        self,
        verb: HTTPMethod,
        url: httpx.URL,
        content: Optional[bytes],
        headers: dict[str, str],
    ) -> httpx.Response:
        try:
            return await self._http.request(verb.value, url, content=content, headers=headers)
        except httpx.TimeoutException as e:
            logger.warning(f"{verb.value} {url} timed out")
            raise RequestTimeoutError() from e
        except httpx.ConnectError as e:
            error = classify_connect_error(e)
            logger.warning(f"{verb.value} {url} could not connect: {error.code}")
            raise error from e
        except (httpx.ReadError, httpx.WriteError, httpx.CloseError, httpx.RemoteProtocolError) as e:
            logger.warning(f"{verb.value} {url} lost connection: {e}")
            raise NetworkUnavailableError(str(e) or type(e).__name__) from e
        except (httpx.InvalidURL, httpx.UnsupportedProtocol) as e:
            raise InvalidURLError(str(url)) from e
        except Exception as e:
            logger.warning(f"{verb.value} {url} failed: {e!r}")
            raise UnknownAPIError(str(e) or type(e).__name__) from e

    async def _handle_response(
        self,
        response: httpx.Response,
        response_model: Any,
        authenticated: bool,
    ) -> Any:
        status = response.status_code

        if 200 <= status < 300:
            if response_model is None:
                return NO_CONTENT
            if not response.content:
                raise NoDataError()
            try:
                return _type_adapter(response_model).validate_json(response.content)
            except PydanticValidationError as e:
                logger.warning(f"Decoding error for {response.request.url}: {e.error_count()} errors")
                raise DecodingFailedError(str(e)) from e

        if status == 401:
            if authenticated:
                logger.info("Unauthorized (401), logging out")
                await self._emit_unauthorized()
                raise UnauthorizedError()
            # e.g. wrong password on login: the server's text is the useful part
            raise UnauthorizedError(self._error_message(response))

        if status == 403:
            raise ForbiddenError()

        if status == 409:
            raise ConflictError(self._error_message(response))

        raise ServerError(status, self._error_message(response))

    @staticmethod
    def _error_message(response: httpx.Response) -> Optional[str]:
        """Extract the message from an ``{"error": "..."}`` body, if there is one."""
        try:
            return APIErrorResponse.model_validate_json(response.content).error
        except PydanticValidationError:
            return None
