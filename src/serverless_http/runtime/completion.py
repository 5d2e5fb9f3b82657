# =============================================================================
# Completion - settle-once cell for one invocation
# =============================================================================
# The response "finish" event, the handler's returned awaitable, an explicit
# done() callback and every error source all race to settle the same cell.
# The first one wins; the rest are logged and ignored.
# =============================================================================

import asyncio
import logging
from typing import Any, Optional

logger = logging.getLogger(__name__)


class CompletionSource:
    """Names of the signals that can settle an invocation."""
    FINISH = "finish"
    RETURN = "return"
    CALLBACK = "callback"
    RAISE = "raise"
    REQUEST_ERROR = "request_error"
    RESPONSE_ERROR = "response_error"


class Completion:
    """
    Single-assignment completion cell.

    Usage:
        completion = Completion()
        response.on("finish", lambda: completion.settle(response, CompletionSource.FINISH))
        value = await completion.wait()
    """

    def __init__(self, loop: Optional[asyncio.AbstractEventLoop] = None):
        self._future = (loop or asyncio.get_running_loop()).create_future()
        self.source: Optional[str] = None

    @property
    def settled(self) -> bool:
        return self._future.done()

    def settle(self, value: Any = None, source: str = CompletionSource.FINISH) -> bool:
        """Resolve with `value`; returns False if already settled."""
        if self._future.done():
            logger.debug(f"Ignoring completion from {source}, already settled by {self.source}")
            return False
        self.source = source
        self._future.set_result(value)
        return True

    def fail(self, exc: BaseException, source: str = CompletionSource.RAISE) -> bool:
        """Resolve with an error; returns False if already settled."""
        if self._future.done():
            logger.debug(f"Ignoring {type(exc).__name__} from {source}, already settled by {self.source}")
            return False
        self.source = source
        self._future.set_exception(exc)
        return True

    async def wait(self) -> Any:
        """Value of the winning settle(), or raise the winning fail()."""
        return await self._future
