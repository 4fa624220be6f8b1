"""
Request executor interface.

Screens and the auth service depend on IAPIClient, not on APIClient.
This enables testing with fakes that never touch the network.
"""

from typing import Any, Awaitable, Callable, Mapping, Optional, Protocol, Union, runtime_checkable

from .models import HTTPMethod


UnauthorizedListener = Callable[[], Union[None, Awaitable[None]]]
QueryParams = Mapping[str, Any]


@runtime_checkable
class IAPIClient(Protocol):
    """
    Interface for one JSON round trip against the platform API.

    All failures are raised as APIError subclasses.
    """

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
        """
        Perform a request and decode the response.

        Args:
            method: HTTP verb
            path: Endpoint path relative to the API root, e.g. "/trainer/clients"
            body: Optional JSON body (pydantic model, dict, list, ...)
            params: Optional query parameters
            response_model: Type to decode the body into. None means no
                            content is expected and NO_CONTENT is returned.
            authenticated: Whether to send the bearer token

        Returns:
            An instance of response_model, or NO_CONTENT

        Raises:
            APIError: One of the taxonomy subclasses
        """
        ...

    def on_unauthorized(self, listener: UnauthorizedListener) -> Callable[[], None]:
        """
        Register a listener for authorization failures (401 or missing token).

        Returns:
            A callable that removes the listener
        """
        ...
