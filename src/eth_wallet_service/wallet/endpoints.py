"""Choosing a live JSON-RPC endpoint.

Public nodes come and go, so nothing is cached: each operation that needs
the network calls :meth:`EndpointSelector.select` again, and a candidate is
only used after it has answered an ``eth_blockNumber`` probe.
"""

from __future__ import annotations

import logging
from typing import Callable, Optional, Sequence

from eth_wallet_service.wallet.errors import NoAvailableEndpointError
from eth_wallet_service.wallet.provider import DEFAULT_TIMEOUT, ChainClient

logger = logging.getLogger("eth_wallet_service.wallet.endpoints")

Connector = Callable[[str, float], ChainClient]


class EndpointSelector:
    """Returns the first candidate endpoint that passes a liveness probe.

    Parameters
    ----------
    connect:
        Factory building a :class:`ChainClient` for an endpoint URI and a
        timeout in seconds. Defaults to :meth:`ChainClient.connect`.
    timeout:
        Upper bound, in seconds, on each probe (and on every later call
        made through the returned client).
    """

    def __init__(
        self,
        connect: Connector | None = None,
        timeout: float = DEFAULT_TIMEOUT,
    ) -> None:
        self._connect = connect or ChainClient.connect
        self.timeout = timeout

    def probe(self, endpoint: str) -> ChainClient | None:
        """Connect to *endpoint* and check it answers. ``None`` if it doesn't."""
        try:
            client = self._connect(endpoint, self.timeout)
            height = client.block_number()
        except Exception as e:
            logger.warning(f"RPC endpoint {endpoint} failed: {e}")
            return None
        logger.debug(f"RPC endpoint {endpoint} alive at block {height}")
        return client

    def select(
        self,
        candidates: Sequence[str],
        preferred: Optional[str] = None,
    ) -> ChainClient:
        """Return a live client, trying *preferred* first.

        Each endpoint is probed at most once per call.

        Raises
        ------
        NoAvailableEndpointError
            If no endpoint answers.
        """
        if preferred:
            client = self.probe(preferred)
            if client is not None:
                logger.info(f"Using preferred RPC endpoint: {preferred}")
                return client
            logger.warning("Preferred RPC endpoint failed, trying fallbacks...")

        tried = {preferred} if preferred else set()
        for endpoint in candidates:
            if endpoint in tried:
                continue
            tried.add(endpoint)
            client = self.probe(endpoint)
            if client is not None:
                logger.info(f"Using RPC endpoint: {endpoint}")
                return client

        raise NoAvailableEndpointError(
            "All RPC endpoints failed. Please check your internet connection "
            "or configure a custom RPC_URL."
        )
