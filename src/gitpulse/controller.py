"""Single-flight summary generation for interactive callers.

Starting a new generation supersedes the one in flight. The superseded run is
not aborted; its outcome is just never applied.
"""

from __future__ import annotations

import logging
from typing import Any

from .models import SummaryStats
from .providers import DataProvider
from .workflow import SummaryServiceConfig, generate_logged_summary, generate_summary

logger = logging.getLogger(__name__)


class _Generation:
    __slots__ = ("number", "cancelled")

    def __init__(self, number: int) -> None:
        self.number = number
        self.cancelled = False


class SummaryController:
    """Holds the state of the latest summary request.

    ``stats``, ``error`` and ``loading`` only ever reflect the most recent
    call to ``generate``.
    """

    def __init__(
        self,
        data_provider: DataProvider,
        config: SummaryServiceConfig | None = None,
        logged: bool = False,
    ) -> None:
        self._provider = data_provider
        self._config = config
        self._logged = logged
        self._current: _Generation | None = None
        self._count = 0
        self.loading = False
        self.error: Exception | None = None
        self.stats: SummaryStats | None = None

    def cancel(self) -> None:
        if self._current is not None:
            self._current.cancelled = True
            self._current = None
            self.loading = False

    async def generate(self, raw_request: Any) -> SummaryStats | None:
        """Run the workflow; returns the stats if this run was applied."""
        self.cancel()
        self._count += 1
        generation = _Generation(self._count)
        self._current = generation
        self.loading = True
        self.error = None

        build = generate_logged_summary if self._logged else generate_summary
        try:
            stats = await build(raw_request, self._provider, self._config)()
        except Exception as exc:
            if generation.cancelled:
                logger.debug("Discarding error from superseded run %d: %s", generation.number, exc)
                return None
            self.error = exc
            self.stats = None
            self.loading = False
            self._current = None
            return None

        if generation.cancelled:
            logger.debug("Discarding result from superseded run %d", generation.number)
            return None
        self.stats = stats
        self.loading = False
        self._current = None
        return stats
