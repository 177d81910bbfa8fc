import asyncio
import logging
import time
from typing import Awaitable, TypeVar

from sabalist.exceptions import UploadTimeout

logger = logging.getLogger(__name__)

T = TypeVar("T")


async def with_timeout(awaitable: Awaitable[T], seconds: float, operation: str) -> T:
    """Await ``awaitable`` for at most ``seconds``.

    A timeout is reported as ``UploadTimeout``, distinct from the operation's
    own errors, which propagate unchanged.
    """
    started = time.monotonic()
    try:
        result = await asyncio.wait_for(awaitable, timeout=seconds)
    except asyncio.TimeoutError as e:
        logger.error(f"TIMEOUT: {operation} exceeded {seconds}s")
        raise UploadTimeout(operation, seconds) from e
    except Exception as e:
        logger.error(f"{operation} failed: {e}")
        raise
    logger.info(f"{operation} completed in {time.monotonic() - started:.2f}s")
    return result


def timestamp_ms() -> int:
    return int(time.time() * 1000)
