"""Ordered endpoint selection with a bounded liveness probe."""

import asyncio
import logging
from typing import Awaitable, Callable, List, Optional, Sequence, Tuple, TypeVar

from core.errors import ChainConnectionError
from core.types import Endpoint

logger = logging.getLogger(__name__)

T = TypeVar("T")

Probe = Callable[[Endpoint], Awaitable[T]]


async def select_endpoint(
    candidates: Sequence[Endpoint],
    probe: Probe,
    timeout: Optional[float] = None,
) -> Tuple[Endpoint, T]:
    """Probe candidates in order and return the first live one.

    Candidates after the first success are never probed.

    Args:
        candidates: Endpoints in priority order
        probe: Coroutine function run against each endpoint; raising means dead
        timeout: Per-probe timeout in seconds, None for no bound

    Returns:
        The selected endpoint and whatever its probe returned

    Raises:
        ChainConnectionError: If every candidate failed
    """
    attempts: List[Tuple[str, str]] = []

    for endpoint in candidates:
        try:
            if timeout is None:
                result = await probe(endpoint)
            else:
                result = await asyncio.wait_for(probe(endpoint), timeout=timeout)
        except asyncio.TimeoutError:
            logger.warning(f"Endpoint {endpoint.url} timed out after {timeout}s")
            attempts.append((endpoint.url, f"timed out after {timeout}s"))
            continue
        except Exception as e:
            logger.warning(f"Endpoint {endpoint.url} failed liveness probe: {e}")
            attempts.append((endpoint.url, str(e) or type(e).__name__))
            continue

        logger.info(f"Selected endpoint {endpoint.url} (chain {endpoint.chain_id})")
        return endpoint, result

    raise ChainConnectionError(attempts)
