import asyncio
from typing import Awaitable, Callable, Optional
from ..core.logger import get_logger

logger = get_logger("RetryRunner")

DEFAULT_MAX_RETRIES = 3
DEFAULT_RETRY_DELAY_S = 30.0

class RetryRunner:
    """
    Runs an attempt, retrying with a fixed delay when it raises.
    Gives up silently after max_retries; the next scheduled tick starts over.
    """
    def __init__(self, attempt: Callable[[], Awaitable[object]],
                 max_retries: int = DEFAULT_MAX_RETRIES,
                 retry_delay: float = DEFAULT_RETRY_DELAY_S,
                 sleep: Callable[[float], Awaitable[None]] = asyncio.sleep):
        self.attempt = attempt
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self._sleep = sleep

    async def run(self) -> Optional[object]:
        """
        Returns the attempt's result, or None once retries are exhausted.
        """
        retries = 0
        while retries < self.max_retries:
            try:
                return await self.attempt()
            except Exception as e:
                retries += 1
                logger.error("attempt_failed", attempt=retries, max_retries=self.max_retries, error=str(e))
                if retries < self.max_retries:
                    logger.info("retry_scheduled", delay_s=self.retry_delay)
                    await self._sleep(self.retry_delay)

        logger.error("max_retries_reached", max_retries=self.max_retries)
        return None
