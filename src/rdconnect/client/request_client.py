"""Low-level request client for the R&D Connect API.

Builds request headers (JSON vs. multipart, optional bearer credential)
and turns every response into either a decoded payload or an
``HttpError`` with a human-readable detail.
"""

from typing import Any, Dict, Optional
import httpx

from ..exceptions import HttpError, NetworkFailureError
from ..io.credentials import CredentialStore
from ..utils.logging import get_logger

logger = get_logger(__name__)

# Error body fields checked in order for a human-readable message.
DETAIL_FIELDS = ("detail", "message", "error")


def _extract_detail(response: httpx.Response, fallback: Optional[str] = None) -> str:
    """Pull a readable message out of an error body, never raising."""
    generic = fallback or f"HTTP error! status: {response.status_code}"
    if not response.content:
        return generic
    try:
        body = response.json()
    except ValueError:
        return generic
    if not isinstance(body, dict):
        return generic
    for field in DETAIL_FIELDS:
        value = body.get(field)
        if isinstance(value, str) and value.strip():
            return value
    # Field validation errors, e.g. {"username": ["already exists"]}
    for field, value in body.items():
        if isinstance(value, list) and value and isinstance(value[0], str):
            if field == "non_field_errors":
                return value[0]
            return f"{field}: {value[0]}"
    return generic


class RequestClient:
    """Async HTTP client that attaches credentials and normalizes responses."""

    def __init__(
        self,
        base_url: str,
        store: CredentialStore,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ) -> None:
        self.base_url = base_url.rstrip("/")
        self.store = store
        self.client = httpx.AsyncClient(
            base_url=self.base_url,
            timeout=timeout,
            transport=transport,
            headers={"User-Agent": "RDConnectClient/0.1.0", "Accept": "application/json"},
        )

    def build_headers(self, require_auth: bool = False, is_multipart: bool = False) -> Dict[str, str]:
        headers: Dict[str, str] = {}
        # Multipart bodies get their boundary content-type from httpx
        if not is_multipart:
            headers["Content-Type"] = "application/json"
        if require_auth:
            access = self.store.access
            if access:
                headers["Authorization"] = f"Bearer {access}"
        return headers

    @staticmethod
    def interpret(response: httpx.Response, error_fallback: Optional[str] = None) -> Any:
        """
        Decode a response or raise ``HttpError``.

        Args:
            response: Completed httpx response
            error_fallback: Message used when the error body carries none

        Returns:
            Decoded JSON payload, or None for an empty success body

        Raises:
            HttpError: On a non-2xx status or an undecodable success body
        """
        if not response.is_success:
            raise HttpError(response.status_code, _extract_detail(response, error_fallback))
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError as e:
            raise HttpError(response.status_code, "Malformed response from server") from e

    async def request(
        self,
        method: str,
        path: str,
        *,
        require_auth: bool = False,
        json: Optional[Any] = None,
        data: Optional[Dict[str, Any]] = None,
        files: Optional[Dict[str, Any]] = None,
        error_fallback: Optional[str] = None,
    ) -> Any:
        is_multipart = data is not None or files is not None
        headers = self.build_headers(require_auth=require_auth, is_multipart=is_multipart)
        logger.debug("API request", extra={"method": method, "path": path, "auth": require_auth})
        try:
            response = await self.client.request(
                method, path, headers=headers, json=json, data=data, files=files
            )
        except httpx.TransportError as e:
            logger.warning(f"Network failure on {method} {path}: {e}")
            raise NetworkFailureError(f"Unable to reach server: {e}") from e
        logger.debug("API response", extra={"method": method, "path": path, "status": response.status_code})
        return self.interpret(response, error_fallback)

    async def close(self) -> None:
        await self.client.aclose()

    async def __aenter__(self):
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        await self.close()
