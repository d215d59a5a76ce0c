"""
HTTP payout adapter.

Submits payouts to an external payments service:

    POST {base_url}/payouts
    {"recipient": "...", "amount": "70", "reference": "campaign:0"}

A 2xx response with a JSON body ``{"id": "..."}`` confirms the payout.
"""

from __future__ import annotations

from decimal import Decimal
from typing import Any

import httpx

from crowdledger.core.exceptions import TransferFailedError
from crowdledger.core.logging import get_logger
from crowdledger.payout.base import PayoutAdapter, PayoutReceipt


class HttpPayout(PayoutAdapter):
    """Payout adapter backed by a remote payments API."""

    def __init__(
        self,
        base_url: str,
        timeout: float = 30.0,
        http_client: httpx.AsyncClient | None = None,
        headers: dict[str, str] | None = None,
    ) -> None:
        """
        Initialize the adapter.

        Args:
            base_url: Payments API root, without trailing slash
            timeout: Request timeout in seconds
            http_client: Shared client; one is created lazily otherwise
            headers: Extra headers sent with every request (e.g. auth)
        """
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._headers = headers or {}
        self._http_client = http_client
        self._owns_client = http_client is None
        self._logger = get_logger("payout.http")

    async def _get_client(self) -> httpx.AsyncClient:
        """Get or create HTTP client."""
        if self._http_client is None:
            self._http_client = httpx.AsyncClient(timeout=self._timeout, headers=self._headers)
        return self._http_client

    async def close(self) -> None:
        """Close HTTP client."""
        if self._http_client and self._owns_client:
            await self._http_client.aclose()
            self._http_client = None

    async def _post(self, path: str, body: Any) -> dict[str, Any]:
        client = await self._get_client()
        url = f"{self._base_url}{path}"
        self._logger.debug(f"POST {url}")
        response = await client.post(url, json=body)
        response.raise_for_status()
        return response.json()

    async def send(
        self,
        recipient: str,
        amount: Decimal,
        reference: str,
    ) -> PayoutReceipt:
        body = {"recipient": recipient, "amount": str(amount), "reference": reference}
        try:
            data = await self._post("/payouts", body)
        except httpx.HTTPStatusError as e:
            raise TransferFailedError(
                f"Payout rejected with HTTP {e.response.status_code}",
                recipient=recipient,
                amount=amount,
                details={"reference": reference, "status_code": e.response.status_code},
            ) from e
        except httpx.HTTPError as e:
            raise TransferFailedError(
                f"Payout request failed: {e}",
                recipient=recipient,
                amount=amount,
                details={"reference": reference},
            ) from e
        except ValueError as e:
            raise TransferFailedError(
                "Payout response was not valid JSON",
                recipient=recipient,
                amount=amount,
                details={"reference": reference},
            ) from e

        payout_id = data.get("id")
        if not payout_id:
            raise TransferFailedError(
                "Payout response carried no id",
                recipient=recipient,
                amount=amount,
                details={"reference": reference, "response": data},
            )

        return PayoutReceipt(
            recipient=recipient,
            amount=amount,
            reference=reference,
            id=str(payout_id),
            metadata=data,
        )
