"""Payment provider HTTP client for bank transfers, bank lookups and charge verification"""

import logging
import httpx
from typing import Any, Dict, List
from stuvendor.domain.models import PaymentVerification, TransferRequest, TransferOutcome
from stuvendor.domain.exceptions import ProviderError, ProviderTimeout, ProviderTransferFailed
from stuvendor.infrastructure.observability.metrics import provider_latency_histogram, provider_failures_counter
from stuvendor.utils.money import to_major_units, to_minor_units

logger = logging.getLogger(__name__)


class FlutterwaveClient:
    """Client for the Flutterwave v3 transfer API"""

    def __init__(self, base_url: str, secret_key: str, timeout: float):
        self.base_url = base_url.rstrip("/")
        self.secret_key = secret_key
        self.timeout = timeout

    @property
    def headers(self) -> Dict[str, str]:
        return {"Authorization": f"Bearer {self.secret_key}"}

    async def transfer(self, request: TransferRequest) -> TransferOutcome:
        """
        Initiate a bank transfer. Amounts go over the wire in major units.

        Returns:
            TransferOutcome: succeeded only when the provider answers status "success"

        Raises:
            ProviderTimeout: No answer within the timeout
            ProviderTransferFailed: Network failure or unreadable response
        """
        payload = {
            "account_bank": request.account_bank,
            "account_number": request.account_number,
            "amount": float(to_major_units(request.amount)),
            "currency": request.currency,
            "reference": request.reference,
            "narration": request.narration,
        }

        async with httpx.AsyncClient(timeout=self.timeout) as client:
            try:
                with provider_latency_histogram.time():
                    response = await client.post(
                        f"{self.base_url}/transfers",
                        json=payload,
                        headers=self.headers,
                    )
                body = response.json()

            except httpx.TimeoutException as e:
                provider_failures_counter.inc()
                raise ProviderTimeout(f"Transfer {request.reference} timed out after {self.timeout}s") from e
            except httpx.RequestError as e:
                provider_failures_counter.inc()
                raise ProviderTransferFailed(f"Transfer {request.reference} failed in transport: {e}") from e
            except ValueError as e:
                provider_failures_counter.inc()
                raise ProviderTransferFailed(
                    f"Unreadable provider response for {request.reference}: HTTP {response.status_code}"
                ) from e

        if not isinstance(body, dict):
            provider_failures_counter.inc()
            raise ProviderTransferFailed(f"Unexpected provider response for {request.reference}")

        if body.get("status") == "success":
            data = body.get("data") or {}
            transaction_id = data.get("id")
            return TransferOutcome(
                succeeded=True,
                transaction_id=str(transaction_id) if transaction_id is not None else None,
                message=body.get("message"),
            )

        provider_failures_counter.inc()
        logger.warning(
            "Provider rejected transfer",
            extra={"reference": request.reference, "http_status": response.status_code, "body": body},
        )
        return TransferOutcome(succeeded=False, message=body.get("message") or f"HTTP {response.status_code}")

    async def list_banks(self, country: str) -> List[Dict[str, Any]]:
        """
        Fetch banks supported for transfers in a country.

        Raises:
            ProviderError: On timeout, HTTP errors, or invalid response
        """
        body = await self._get(f"/banks/{country}")
        return body.get("data") or []

    async def resolve_account(self, account_number: str, bank_code: str) -> str:
        """
        Look up the account holder name for a bank account.

        Raises:
            ProviderError: Account could not be resolved
        """
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            try:
                response = await client.post(
                    f"{self.base_url}/accounts/resolve",
                    json={"account_number": account_number, "account_bank": bank_code},
                    headers=self.headers,
                )
                response.raise_for_status()
                body = response.json()
                if body.get("status") != "success":
                    raise ProviderError(body.get("message") or "Account could not be resolved")
                return body["data"]["account_name"]

            except httpx.TimeoutException as e:
                raise ProviderError(f"Provider timeout after {self.timeout}s") from e
            except httpx.HTTPStatusError as e:
                raise ProviderError(f"Provider error: {e.response.status_code}") from e
            except httpx.RequestError as e:
                raise ProviderError(f"Provider unavailable: {e}") from e
            except (KeyError, ValueError, TypeError) as e:
                raise ProviderError(f"Invalid account data from provider: {e}") from e

    async def verify_transaction(self, transaction_id: str) -> PaymentVerification:
        """
        Fetch the provider's record of a customer charge.

        A charge the provider does not know, or one that did not go through,
        comes back with succeeded=False rather than an error.

        Raises:
            ProviderError: On timeout, transport failure, or invalid response
        """
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            try:
                with provider_latency_histogram.time():
                    response = await client.get(
                        f"{self.base_url}/transactions/{transaction_id}/verify",
                        headers=self.headers,
                    )
                body = response.json()
            except httpx.TimeoutException as e:
                provider_failures_counter.inc()
                raise ProviderError(f"Provider timeout after {self.timeout}s") from e
            except httpx.RequestError as e:
                provider_failures_counter.inc()
                raise ProviderError(f"Provider unavailable: {e}") from e
            except ValueError as e:
                provider_failures_counter.inc()
                raise ProviderError(f"Invalid response from provider: HTTP {response.status_code}") from e

        if response.status_code >= 500 or not isinstance(body, dict):
            provider_failures_counter.inc()
            raise ProviderError(f"Provider error: {response.status_code}")

        data = body.get("data") or {}
        if body.get("status") != "success" or not isinstance(data, dict):
            return PaymentVerification(
                succeeded=False,
                transaction_id=str(transaction_id),
                message=body.get("message") or f"HTTP {response.status_code}",
            )

        try:
            amount = to_minor_units(data["amount"]) if data.get("amount") is not None else None
        except (ArithmeticError, ValueError) as e:
            raise ProviderError(f"Invalid amount from provider: {data.get('amount')!r}") from e

        return PaymentVerification(
            succeeded=data.get("status") == "successful",
            transaction_id=str(data.get("id", transaction_id)),
            tx_ref=data.get("tx_ref"),
            amount=amount,
            currency=data.get("currency"),
            message=body.get("message"),
        )

    async def _get(self, path: str) -> Dict[str, Any]:
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            try:
                response = await client.get(f"{self.base_url}{path}", headers=self.headers)
                response.raise_for_status()
                body = response.json()
            except httpx.TimeoutException as e:
                raise ProviderError(f"Provider timeout after {self.timeout}s") from e
            except httpx.HTTPStatusError as e:
                raise ProviderError(f"Provider error: {e.response.status_code}") from e
            except httpx.RequestError as e:
                raise ProviderError(f"Provider unavailable: {e}") from e
            except ValueError as e:
                raise ProviderError(f"Invalid response from provider: {e}") from e

        if body.get("status") != "success":
            raise ProviderError(body.get("message") or "Provider request failed")
        return body
