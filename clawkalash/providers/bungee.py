import logging
from typing import Any, Dict, Optional, Tuple

import httpx

from ..config import settings
from ..core.recovery import RateLimitedError, TransientNetworkError

logger = logging.getLogger(__name__)


def _retry_after_seconds(response: httpx.Response) -> Optional[float]:
    raw = response.headers.get('retry-after')
    if not raw:
        return None
    try:
        return float(raw)
    except ValueError:
        return None


class BungeeProvider:
    """Thin client for the Bungee (Socket) public API surface.

    Every method returns the decoded JSON envelope (``{"success": ..., ...}``);
    interpreting ``success`` is left to the caller. Transient failures are
    raised as ``RateLimitedError`` / ``TransientNetworkError`` so the retry
    utility can absorb them.
    """

    def __init__(
        self,
        api_key: Optional[str] = None,
        base_url: Optional[str] = None,
        timeout_s: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.api_key = api_key if api_key is not None else settings.bungee_api_key

        configured = base_url or settings.bungee_base_url
        self.base_url = configured.rstrip('/')
        self.timeout_s = timeout_s if timeout_s is not None else settings.request_timeout_seconds
        self._transport = transport

    def _headers(self) -> Dict[str, str]:
        headers = {
            'Accept': 'application/json',
        }
        if self.api_key:
            headers['API-KEY'] = self.api_key
        return headers

    async def _request(
        self,
        method: str,
        path: str,
        *,
        headers: Optional[Dict[str, str]] = None,
        **kwargs,
    ) -> httpx.Response:
        merged_headers = {**self._headers(), **(headers or {})}

        try:
            async with httpx.AsyncClient(
                base_url=self.base_url,
                timeout=self.timeout_s,
                transport=self._transport,
            ) as client:
                resp = await client.request(method, path, headers=merged_headers, **kwargs)
        except httpx.TransportError as exc:
            raise TransientNetworkError(f'Bungee request to {path} failed: {exc}', provider='bungee') from exc

        if resp.status_code == 429:
            raise RateLimitedError(
                f'Bungee rate limit hit on {path}',
                retry_after=_retry_after_seconds(resp),
                provider='bungee',
            )
        if resp.status_code >= 500:
            raise TransientNetworkError(
                f'Bungee returned HTTP {resp.status_code} on {path}',
                provider='bungee',
            )
        return resp

    @staticmethod
    def _decode(resp: httpx.Response) -> Dict[str, Any]:
        """Decode a JSON envelope.

        4xx responses still carry ``{"success": false, ...}`` bodies with the
        remote message, so those are returned rather than raised.
        """
        try:
            data = resp.json()
        except ValueError:
            if resp.is_error:
                resp.raise_for_status()
            raise TransientNetworkError(
                f'Bungee returned a non-JSON body (HTTP {resp.status_code})',
                provider='bungee',
            )
        if not isinstance(data, dict):
            raise TransientNetworkError('Bungee returned an unexpected JSON shape', provider='bungee')
        return data

    async def search_tokens(self, query: str, user_address: Optional[str] = None) -> Dict[str, Any]:
        """Free-text token search (symbol, name or address)."""

        params: Dict[str, Any] = {'q': query}
        if user_address:
            params['address'] = user_address
        resp = await self._request('GET', '/api/v1/tokens/search', params=params)
        return self._decode(resp)

    async def quote(self, params: Dict[str, Any]) -> Tuple[Dict[str, Any], Optional[str]]:
        """Fetch an auto-route quote via the public v1 API.

        Returns the JSON envelope and the ``server-req-id`` header used when
        reporting quote failures upstream.
        """

        cleaned_params: Dict[str, Any] = {k: v for k, v in params.items() if v is not None}
        resp = await self._request('GET', '/api/v1/bungee/quote', params=cleaned_params)
        return self._decode(resp), resp.headers.get('server-req-id')

    async def submit(self, payload: Dict[str, Any]) -> Dict[str, Any]:
        """Submit a signed Permit2 request for settlement."""

        resp = await self._request(
            'POST',
            '/api/v1/bungee/submit',
            json=payload,
            headers={'Content-Type': 'application/json'},
        )
        return self._decode(resp)

    async def status(self, request_hash: str) -> Dict[str, Any]:
        """Settlement status for a request hash."""

        resp = await self._request('GET', '/api/v1/bungee/status', params={'requestHash': request_hash})
        return self._decode(resp)
