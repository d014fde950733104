"""
Tiendanube REST API client.
"""

import logging
from typing import Optional, Dict, List, Any
import httpx

from nubefeed.core.security import sanitize_string_for_logging


logger = logging.getLogger(__name__)

DEFAULT_API_BASE = "https://api.tiendanube.com/v1"
DEFAULT_USER_AGENT = "nube-feed (contact@example.com)"


class TiendanubeError(Exception):
    """Upstream API failure. status_code is None for transport errors."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class TiendanubeClient:
    """
    Async Tiendanube REST API client for a single store.

    Requests are authenticated with the store's access token in the
    ``Authentication: bearer <token>`` header Tiendanube expects (not the
    usual ``Authorization``). Failures are never retried here.
    """

    def __init__(
        self,
        store_id: str,
        access_token: str,
        api_base: str = DEFAULT_API_BASE,
        user_agent: str = DEFAULT_USER_AGENT,
        page_size: int = 200,
        timeout: float = 30.0,
        http_client: Optional[httpx.AsyncClient] = None
    ):
        """
        Initialize Tiendanube client.

        Args:
            store_id: Tiendanube store id (the OAuth user_id)
            access_token: Store access token
            api_base: API root, without the store id
            user_agent: Identifying User-Agent (required by Tiendanube)
            page_size: Products requested per page
            timeout: Request timeout in seconds
            http_client: Shared httpx client; one is created (and owned) if omitted
        """
        self.store_id = str(store_id)
        self.access_token = access_token
        self.base_url = f"{api_base.rstrip('/')}/{self.store_id}"
        self.user_agent = user_agent
        self.page_size = page_size

        self._owns_client = http_client is None
        self.client = http_client or httpx.AsyncClient(
            timeout=timeout,
            follow_redirects=True
        )

    def _headers(self) -> Dict[str, str]:
        return {
            "Content-Type": "application/json",
            "User-Agent": self.user_agent,
            "Authentication": f"bearer {self.access_token}",
        }

    async def _request(
        self,
        method: str,
        endpoint: str,
        params: Optional[Dict] = None,
        json_data: Optional[Dict] = None
    ) -> httpx.Response:
        """
        Make one authenticated HTTP request.

        Args:
            method: HTTP method
            endpoint: API path relative to the store root (e.g. /products)
            params: Query parameters
            json_data: JSON body

        Returns:
            httpx.Response with a 2xx status

        Raises:
            TiendanubeError: On non-2xx status or transport failure
        """
        url = f"{self.base_url}/{endpoint.lstrip('/')}"

        try:
            response = await self.client.request(
                method=method,
                url=url,
                params=params,
                json=json_data,
                headers=self._headers()
            )
        except httpx.HTTPError as e:
            logger.warning(f"Tiendanube transport error | store_id={self.store_id} | {method} {endpoint} | {e}")
            raise TiendanubeError(f"Request error: {e}") from e

        if response.is_success:
            return response

        body = sanitize_string_for_logging(response.text[:200])
        logger.warning(
            f"Tiendanube API error | store_id={self.store_id} | {method} {endpoint} | "
            f"status={response.status_code} | {body}"
        )
        raise TiendanubeError(
            f"Tiendanube API {response.status_code} {response.reason_phrase}: {body}",
            status_code=response.status_code
        )

    async def _get_json(self, endpoint: str, params: Optional[Dict] = None) -> Any:
        response = await self._request("GET", endpoint, params=params)
        try:
            return response.json()
        except ValueError as e:
            raise TiendanubeError(f"Invalid JSON from {endpoint}: {e}", status_code=response.status_code) from e

    async def get_products(self, page: int = 1, per_page: Optional[int] = None) -> List[Dict[str, Any]]:
        """
        Get one page of products.

        Returns:
            List of raw product dicts (empty if the body is not a list)
        """
        data = await self._get_json(
            "/products",
            params={"page": page, "per_page": per_page or self.page_size}
        )
        return data if isinstance(data, list) else []

    async def fetch_all_products(self) -> List[Dict[str, Any]]:
        """
        Page through the whole catalog.

        Stops on an empty page or a page shorter than the page size. Any
        upstream failure aborts the whole fetch.

        Returns:
            All products, in request order
        """
        products: List[Dict[str, Any]] = []
        page = 1

        while True:
            current = await self.get_products(page=page, per_page=self.page_size)
            if not current:
                break
            products.extend(current)
            logger.debug(f"Fetched page {page} ({len(current)} products) for store {self.store_id}")
            if len(current) < self.page_size:
                break
            page += 1

        logger.info(f"Fetched {len(products)} products in {page} page(s) for store {self.store_id}")
        return products

    async def get_domains(self) -> Any:
        """Get the store's domain list (needs the domains scope)."""
        return await self._get_json("/domains")

    async def get_store(self) -> Dict[str, Any]:
        """Get store metadata."""
        data = await self._get_json("/store")
        return data if isinstance(data, dict) else {}

    async def register_webhook(self, event: str, url: str) -> Dict[str, Any]:
        """
        Register a webhook for this store.

        Args:
            event: Event name (e.g. app/uninstalled)
            url: Callback URL
        """
        response = await self._request("POST", "/webhooks", json_data={"event": event, "url": url})
        try:
            return response.json()
        except ValueError:
            return {}

    async def close(self):
        """Close the HTTP client if this instance created it."""
        if self._owns_client:
            await self.client.aclose()


async def exchange_code_for_token(
    code: str,
    client_id: str,
    client_secret: str,
    auth_base: str = "https://www.tiendanube.com",
    http_client: Optional[httpx.AsyncClient] = None,
    timeout: float = 30.0
) -> Dict[str, Any]:
    """
    Exchange an OAuth authorization code for an access token.

    Args:
        code: Authorization code from the install redirect
        client_id: App client id
        client_secret: App client secret
        auth_base: Tiendanube site root
        http_client: Shared httpx client (optional)
        timeout: Request timeout when no client is given

    Returns:
        Token response dict (access_token, user_id, scope, token_type)

    Raises:
        TiendanubeError: If the exchange fails or the body is not JSON
    """
    url = f"{auth_base.rstrip('/')}/apps/authorize/token"
    payload = {
        "client_id": client_id,
        "client_secret": client_secret,
        "grant_type": "authorization_code",
        "code": code,
    }

    client = http_client or httpx.AsyncClient(timeout=timeout)
    try:
        response = await client.post(url, json=payload)
    except httpx.HTTPError as e:
        logger.error(f"OAuth token exchange transport error: {e}")
        raise TiendanubeError(f"Request error: {e}") from e
    finally:
        if http_client is None:
            await client.aclose()

    try:
        data = response.json()
    except ValueError:
        data = {}

    if not response.is_success:
        body = sanitize_string_for_logging(response.text[:200])
        logger.error(f"OAuth token exchange failed | status={response.status_code} | {body}")
        raise TiendanubeError(
            f"Token exchange failed with HTTP {response.status_code}",
            status_code=response.status_code
        )

    if not isinstance(data, dict):
        raise TiendanubeError("Token exchange returned a non-object body", status_code=response.status_code)

    return data
