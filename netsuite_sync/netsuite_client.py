"""NetSuite REST client for fetching vendor (author) records."""

import logging
from datetime import datetime
from typing import List, Optional
from urllib.parse import quote, urlencode

import httpx

from .config import NetSuiteConfig
from .errors import AcquisitionError, ConfigurationError
from .oauth import build_auth_header

logger = logging.getLogger(__name__)

VENDOR_PATH = "/services/rest/record/v1/vendor"

# Guards against a server that keeps reporting hasMore.
MAX_PAGES = 500


class NetSuiteClient:
    """Client for the NetSuite REST record API using token-based auth."""

    def __init__(self, config: NetSuiteConfig, transport: Optional[httpx.AsyncBaseTransport] = None):
        self.config = config
        self.transport = transport

    def build_vendor_url(self, offset: int = 0, modified_since: Optional[datetime] = None) -> str:
        params = {"limit": self.config.page_size, "offset": offset}
        if modified_since is not None:
            params["q"] = f'lastModifiedDate ON_OR_AFTER "{modified_since.date().isoformat()}"'
        return f"{self.config.base_url}{VENDOR_PATH}?{urlencode(params, quote_via=quote)}"

    def _get_headers(self, url: str) -> dict:
        try:
            auth_header = build_auth_header(
                "GET",
                url,
                consumer_key=self.config.consumer_key,
                consumer_secret=self.config.consumer_secret,
                token_id=self.config.token_id,
                token_secret=self.config.token_secret,
                realm=self.config.realm,
                signature_method=self.config.signature_method,
            )
        except ValueError as exc:
            raise ConfigurationError(f"Cannot sign NetSuite request: {exc}") from exc
        return {
            "Authorization": auth_header,
            "Content-Type": "application/json",
            "Prefer": "transient",
        }

    async def _get_page(self, client: httpx.AsyncClient, url: str) -> dict:
        logger.info(f"Fetching from NetSuite: {url}")
        try:
            response = await client.get(url, headers=self._get_headers(url))
        except httpx.TimeoutException as exc:
            raise AcquisitionError(f"NetSuite request timed out: {exc}") from exc
        except httpx.RequestError as exc:
            raise AcquisitionError(f"NetSuite unreachable: {exc}") from exc

        if not response.is_success:
            raise AcquisitionError(
                f"NetSuite API error: {response.status_code} - {response.text[:500]}",
                status_code=response.status_code,
            )
        try:
            page = response.json()
        except ValueError as exc:
            raise AcquisitionError(
                f"NetSuite returned invalid JSON: {response.text[:200]}",
                status_code=response.status_code,
            ) from exc
        if not isinstance(page, dict):
            raise AcquisitionError(
                f"NetSuite returned {type(page).__name__} instead of an object: {response.text[:200]}",
                status_code=response.status_code,
            )
        return page

    async def fetch_vendors(self, modified_since: Optional[datetime] = None) -> List[dict]:
        """
        Fetch all vendor records, following offset pagination until hasMore is false.

        Args:
            modified_since: only return vendors modified on or after this moment

        Raises:
            AcquisitionError: network failure, timeout or non-2xx response
        """
        vendors: List[dict] = []
        offset = 0
        async with httpx.AsyncClient(timeout=self.config.timeout, transport=self.transport) as client:
            for _ in range(MAX_PAGES):
                page = await self._get_page(client, self.build_vendor_url(offset, modified_since))
                items = page.get("items") or []
                vendors.extend(items)
                if not page.get("hasMore") or not items:
                    break
                offset += len(items)
            else:
                logger.warning(f"Stopped paging NetSuite vendors after {MAX_PAGES} pages")

        logger.info(f"Found {len(vendors)} vendors to process")
        return vendors
