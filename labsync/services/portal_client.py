"""
Client for the lab results portal.

The portal has no API; a lookup is the same form post a browser would make,
and the answer is whatever HTML page comes back.
"""
import logging
from typing import Optional

import httpx

from ..exceptions import PortalError

logger = logging.getLogger(__name__)


class PortalClient:
    """Submits one barcode + date-of-birth lookup per call."""

    def __init__(
        self,
        portal_url: str,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.portal_url = portal_url
        self._client = httpx.AsyncClient(
            follow_redirects=True,
            timeout=timeout,
            transport=transport,
        )

    async def lookup(self, barcode: str, dob: str) -> bytes:
        """
        Post the lookup form and return the raw response body.

        Non-2xx answers are still returned: the portal's error pages carry no
        result table and classify as "not yet available" downstream.
        Raises PortalError on transport failures.
        """
        try:
            response = await self._client.post(
                self.portal_url,
                data={"barcode": barcode, "dob": dob},
            )
        except httpx.HTTPError as e:
            raise PortalError(f"Retrieve results error: {e}", barcode) from e

        if response.is_error:
            logger.warning(
                f"Portal answered {response.status_code} for barcode {barcode}"
            )
        return response.content

    async def close(self):
        await self._client.aclose()
