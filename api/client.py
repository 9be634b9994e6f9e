"""
API client for Drip

aiohttp-based client for the Drip v2 REST API. Every public method issues
exactly one request and either returns or raises; nothing is retried.
"""
import asyncio
import base64
import json
from contextlib import asynccontextmanager
from typing import Any, Dict, Iterable, Mapping, Optional, Tuple, Type, TypeVar, Union
from urllib.parse import quote

import aiohttp
from pydantic import ValidationError

from config import get_config
from constants import ACCEPT_MEDIA_TYPE, JSON_CONTENT_TYPE, LOG_TRUNCATE_LENGTH, UNTAG_SUCCESS_STATUS
from exceptions import ConfigurationException, DripAPIError, DripNetworkError, RequestBuildError
from models.base import DripBaseModel
from models.event import Event
from models.subscriber import Subscriber
from models.tag import TagAssociation
from utils.logging import LOGGER_NAME, get_contextual_logger

logger = get_contextual_logger(f'{LOGGER_NAME}.{__name__}')

ModelT = TypeVar('ModelT', bound=DripBaseModel)
SubscriberLike = Union[Subscriber, Mapping[str, Any]]


def _truncate(text: str) -> str:
    if len(text) > LOG_TRUNCATE_LENGTH:
        return text[:LOG_TRUNCATE_LENGTH] + "..."
    return text


class DripClient:
    """
    Async HTTP client for one Drip account.

    Features:
    - HTTP Basic authentication (API key as username, blank password)
    - Fixed connect, TLS handshake and total request timeouts
    - Lazily created session; no network I/O at construction
    - Typed errors for build, network and API failures
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        account_id: Optional[str] = None,
        base_url: Optional[str] = None
    ):
        """
        Initialize the client with credentials.

        Args:
            api_key: Drip API key, defaults to DRIP_API_KEY
            account_id: Drip account id, defaults to DRIP_ACCOUNT_ID
            base_url: Override the default API base URL

        Raises:
            ConfigurationException: If the API key or account id is missing
        """
        config = get_config()
        self._api_key = api_key or config.api_key
        self._account_id = account_id or config.account_id
        self._base_url = base_url or config.base_url
        self._session: Optional[aiohttp.ClientSession] = None

        if not self._api_key:
            raise ConfigurationException("DRIP_API_KEY must be configured")
        if not self._account_id:
            raise ConfigurationException("DRIP_ACCOUNT_ID must be configured")

        # sock_connect bounds the TCP connect; connect also covers the TLS handshake
        self._timeout = aiohttp.ClientTimeout(
            total=config.request_timeout,
            connect=config.connect_timeout + config.tls_handshake_timeout,
            sock_connect=config.connect_timeout
        )
        logger.debug(f"DripClient initialized for account {self._account_id}")

    @property
    def api_key(self) -> str:
        return self._api_key

    @property
    def account_id(self) -> str:
        return self._account_id

    @property
    def base_url(self) -> str:
        return self._base_url

    @property
    def timeout(self) -> aiohttp.ClientTimeout:
        return self._timeout

    @property
    def headers(self) -> Dict[str, str]:
        """Get headers with basic authentication (blank password) and media type."""
        credentials = base64.b64encode(f"{self._api_key}:".encode('latin-1')).decode('ascii')
        return {
            'Authorization': f'Basic {credentials}',
            'Accept': ACCEPT_MEDIA_TYPE,
        }

    def _build_url(self, path: str) -> str:
        """Join base URL, account id and a path beginning with '/'."""
        base = self.base_url if self.base_url.endswith('/') else self.base_url + '/'
        return f"{base}{quote(self.account_id, safe='')}{path}"

    async def _ensure_session(self) -> None:
        """Ensure aiohttp session exists and is not closed."""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(timeout=self.timeout)
            logger.debug("Created new aiohttp session")

    async def _send(
        self,
        method: str,
        path: str,
        operation: str,
        payload: Optional[Dict[str, Any]] = None
    ) -> Tuple[int, str]:
        """
        Issue one authenticated request.

        Returns:
            Response status and body text

        Raises:
            RequestBuildError: Payload not serializable or URL invalid
            DripNetworkError: No response was received
        """
        url = self._build_url(path)
        headers = self.headers
        data = None
        if payload is not None:
            try:
                data = json.dumps(payload).encode('utf-8')
            except (TypeError, ValueError) as e:
                raise RequestBuildError(f"{operation}: payload is not JSON serializable: {e}") from e
            headers['Content-Type'] = JSON_CONTENT_TYPE

        await self._ensure_session()

        # Timing state lives on the ContextualLogger instance, so one per request
        tracer = get_contextual_logger(f"{LOGGER_NAME}.{__name__}")
        trace_id = tracer.start_operation(operation)
        result = "failed"
        try:
            tracer.debug(f"{method}: {path}", account_id=self._account_id)
            async with self._session.request(method, url, data=data, headers=headers) as response:
                body = await response.text(errors='replace')
                tracer.debug(f"{method} {path} -> {response.status}: {_truncate(body)}", status=response.status)
            result = "completed"
        except aiohttp.InvalidURL as e:
            raise RequestBuildError(f"{operation}: invalid request URL: {e}") from e
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise DripNetworkError(f"{operation}: network error: {e!r}") from e
        finally:
            tracer.end_operation(trace_id, result)

        return response.status, body

    async def _authenticated_post(self, path: str, payload: Dict[str, Any], operation: str) -> None:
        """POST a JSON payload; any 2xx status is success."""
        status, body = await self._send('POST', path, operation, payload)
        if not 200 <= status < 300:
            raise DripAPIError(status, body, operation)

    async def create_or_update_subscriber(
        self,
        email: str,
        custom_fields: Optional[Mapping[str, Any]] = None
    ) -> None:
        """
        Create a subscriber, or update the existing one with this email.

        Custom field keys are normalized before sending; values are sent as-is.

        Raises:
            DripAPIError: Drip answered with a non-2xx status
        """
        subscriber = self._build_model(
            Subscriber,
            {'email': email, 'custom_fields': custom_fields or {}},
            'create_or_update_subscriber'
        )
        payload = {'subscribers': [subscriber.to_payload()]}
        await self._authenticated_post('/subscribers', payload, 'create_or_update_subscriber')

    async def batch_update_subscribers(self, subscribers: Iterable[SubscriberLike]) -> None:
        """
        Create or update several subscribers in a single batch request.

        Args:
            subscribers: Subscriber models or mappings with the same fields
        """
        entries = [
            self._build_model(Subscriber, s, 'batch_update_subscribers').to_payload()
            for s in subscribers
        ]
        payload = {'batches': [{'subscribers': entries}]}
        await self._authenticated_post('/subscribers/batches', payload, 'batch_update_subscribers')

    async def record_event(self, email: str, action: str) -> None:
        """Record a custom event for a subscriber."""
        event = self._build_model(Event, {'email': email, 'action': action}, 'record_event')
        await self._authenticated_post('/events', {'events': [event.to_payload()]}, 'record_event')

    async def tag_subscriber(self, email: str, tag: str) -> None:
        """Apply a tag to a subscriber."""
        association = self._build_model(TagAssociation, {'email': email, 'tag': tag}, 'tag_subscriber')
        await self._authenticated_post('/tags', {'tags': [association.to_payload()]}, 'tag_subscriber')

    async def untag_subscriber(self, email: str, tag: str) -> None:
        """
        Remove a tag from a subscriber.

        Only 204 No Content counts as success; any other status raises.
        """
        association = self._build_model(TagAssociation, {'email': email, 'tag': tag}, 'untag_subscriber')
        path = (
            f"/subscribers/{quote(association.email, safe='@')}"
            f"/tags/{quote(association.tag, safe='')}"
        )
        status, body = await self._send('DELETE', path, 'untag_subscriber')
        if status != UNTAG_SUCCESS_STATUS:
            raise DripAPIError(status, body, 'untag_subscriber')

    @staticmethod
    def _build_model(model_cls: Type[ModelT], value: Union[ModelT, Mapping[str, Any]], operation: str) -> ModelT:
        """Validate request data into a payload model; failures are build errors."""
        if isinstance(value, model_cls):
            return value
        try:
            return model_cls.model_validate(value)
        except ValidationError as e:
            raise RequestBuildError(f"{operation}: invalid {model_cls.__name__}: {e}") from e

    async def close(self) -> None:
        """Close the HTTP session and clean up resources."""
        if self._session and not self._session.closed:
            await self._session.close()
            logger.debug("Closed aiohttp session")

    async def __aenter__(self):
        """Async context manager entry."""
        await self._ensure_session()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        """Async context manager exit with cleanup."""
        await self.close()


@asynccontextmanager
async def get_drip_client(
    api_key: Optional[str] = None,
    account_id: Optional[str] = None
):
    """
    Get a Drip client as async context manager.

    Usage:
        async with get_drip_client() as drip:
            await drip.record_event('a@example.com', 'Signed up')
    """
    client = DripClient(api_key=api_key, account_id=account_id)
    try:
        yield client
    finally:
        await client.close()
