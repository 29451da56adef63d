"""Sponsored transaction execution.

The sponsor key never lives in this process: move calls are handed to an
external signer service that signs with the sponsor wallet, pays gas,
submits, and waits for effects. Nonce/gas-coin sequencing for the shared
sponsor key is the signer's job; contention comes back as HTTP 409/429 and
is surfaced as a retryable TransportFailure.
"""

from __future__ import annotations

import abc

import httpx
import structlog

from agora.chain.results import ExecutionResult
from agora.chain.transactions import MoveCall
from agora.config import Settings
from agora.errors import TransportFailure

logger = structlog.get_logger()

_RETRYABLE_STATUSES = frozenset({409, 429, 503})


class TransactionExecutor(abc.ABC):
    """Signs, pays for and submits a move call on behalf of a user."""

    @property
    @abc.abstractmethod
    def sponsor_address(self) -> str:
        """Address of the wallet paying gas."""

    @abc.abstractmethod
    async def execute(self, call: MoveCall) -> ExecutionResult:
        """Submit and wait for effects.

        Raises:
            TransportFailure: On network errors, timeouts, or aborted execution.
        """

    async def aclose(self) -> None:  # noqa: B027
        """Release resources."""


class HttpSponsorExecutor(TransactionExecutor):
    """Executor backed by the signer service's HTTP API."""

    def __init__(
        self,
        base_url: str,
        sponsor_address: str,
        *,
        token: str = "",
        network: str = "testnet",
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        headers = {"Authorization": f"Bearer {token}"} if token else {}
        self._client = httpx.AsyncClient(
            base_url=base_url,
            headers=headers,
            timeout=timeout,
            transport=transport,
        )
        self._sponsor_address = sponsor_address
        self._network = network

    @property
    def sponsor_address(self) -> str:
        return self._sponsor_address

    async def execute(self, call: MoveCall) -> ExecutionResult:
        payload = {
            "network": self._network,
            "transaction": call.to_payload(),
            "options": {"showEffects": True, "showObjectChanges": True},
        }
        try:
            response = await self._client.post("/v1/execute", json=payload)
        except httpx.TimeoutException as e:
            logger.error("sponsored_tx_timeout", target=call.target)
            msg = f"Sponsored transaction timed out: {call.target}"
            raise TransportFailure(msg, retryable=True) from e
        except httpx.HTTPError as e:
            logger.error("sponsored_tx_transport_error", target=call.target, error=str(e))
            msg = f"Signer service unreachable: {e}"
            raise TransportFailure(msg, retryable=True) from e

        if response.status_code >= 400:
            retryable = response.status_code in _RETRYABLE_STATUSES
            logger.error(
                "sponsored_tx_rejected_by_signer",
                target=call.target,
                status=response.status_code,
                body=response.text[:500],
            )
            msg = f"Signer service returned {response.status_code}: {response.text[:200]}"
            raise TransportFailure(msg, retryable=retryable)

        try:
            data = response.json()
        except ValueError as e:
            msg = "Signer service returned malformed JSON"
            raise TransportFailure(msg) from e
        if not isinstance(data, dict):
            msg = "Signer service returned an unexpected payload"
            raise TransportFailure(msg)
        result = ExecutionResult.from_rpc(data)

        if not result.succeeded:
            logger.warning(
                "sponsored_tx_aborted",
                target=call.target,
                digest=result.digest,
                error=result.error,
            )
            msg = f"Transaction {result.digest} failed on chain: {result.error or result.status}"
            raise TransportFailure(msg)

        logger.info("sponsored_tx_submitted", target=call.target, digest=result.digest)
        return result

    async def aclose(self) -> None:
        await self._client.aclose()


# ---------------------------------------------------------------------------
# Process-wide executor (mirrors database/redis initialisation)
# ---------------------------------------------------------------------------

_executor: TransactionExecutor | None = None


def init_executor(settings: Settings) -> TransactionExecutor:
    """Create the process-wide sponsor executor."""
    global _executor  # noqa: PLW0603
    if not settings.sponsor_address:
        logger.warning("sponsor_address_not_configured")
    _executor = HttpSponsorExecutor(
        settings.sponsor_signer_url,
        settings.sponsor_address,
        token=settings.sponsor_signer_token,
        network=settings.sui_network,
        timeout=settings.executor_timeout_seconds,
    )
    return _executor


async def close_executor() -> None:
    global _executor  # noqa: PLW0603
    if _executor is not None:
        await _executor.aclose()
        _executor = None


def get_executor() -> TransactionExecutor:
    """Get the sponsor executor (FastAPI dependency)."""
    if _executor is None:
        msg = "Sponsor executor not initialized. Call init_executor() first."
        raise RuntimeError(msg)
    return _executor
