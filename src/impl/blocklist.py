"""
Temporary blocklist for models that answered with a rate limit.
"""

import time
from typing import Callable, Dict, List

from common.logging import get_logger
from config.settings import MODEL_BLOCK_SECONDS

logger = get_logger(__name__)


class ModelBlocklist:
    """
    Maps model name to the epoch second its block expires.
    Expired entries are dropped whenever they are looked at.
    """

    def __init__(self, clock: Callable[[], float] = time.time):
        self._clock = clock
        self._blocked_until: Dict[str, float] = {}

    def is_blocked(self, model_name: str) -> bool:
        blocked_until = self._blocked_until.get(model_name)
        if blocked_until is None:
            return False

        if self._clock() >= blocked_until:
            del self._blocked_until[model_name]
            return False
        return True

    def block(self, model_name: str, duration: float = MODEL_BLOCK_SECONDS) -> None:
        self._blocked_until[model_name] = self._clock() + duration
        logger.info("Model blocked", extra={"model": model_name, "seconds": duration})

    def blocked_models(self) -> List[str]:
        return [name for name in list(self._blocked_until) if self.is_blocked(name)]

    def __len__(self) -> int:
        return len(self._blocked_until)
