"""Sequential stage runner used by the CDI command line."""
from __future__ import annotations

import logging
import time
from typing import Dict, Iterable, List, Sequence

from .registry import StageRegistry
from .stage import StageContext

logger = logging.getLogger(__name__)


class StageRunner:
    """Execute registered stages one after another."""

    def __init__(self, registry: StageRegistry) -> None:
        self._registry = registry

    def available(self) -> List[str]:
        return self._registry.names()

    def run(self, stages: Sequence[str], context: StageContext) -> Dict[str, float]:
        """Run each stage in *stages* and return the elapsed seconds per stage.

        A failing stage is logged with its traceback and re-raised; stages
        after it are not attempted.
        """

        timings: Dict[str, float] = {}
        for name in stages:
            definition = self._registry.get(name)
            stage_logger = logging.getLogger(definition.module)
            stage_logger.info(
                "Starting stage '%s' (run_id=%s, timestamp=%s)",
                definition.name,
                context.run_id,
                context.timestamp.isoformat(),
            )
            started = time.perf_counter()
            try:
                definition.callable(context)
            except Exception:
                stage_logger.exception("Stage '%s' failed", definition.name)
                raise
            timings[name] = time.perf_counter() - started
            stage_logger.info(
                "Completed stage '%s' in %.2fs", definition.name, timings[name]
            )
        return timings

    def resolve(self, requested: Iterable[str] | None) -> List[str]:
        """Return a validated list of stage names based on *requested*."""

        if not requested:
            return self.available()
        requested = list(requested)
        missing = [name for name in requested if name not in self._registry]
        if missing:
            raise ValueError(f"Unknown stages requested: {', '.join(missing)}")
        # Preserve order while removing duplicates
        result: List[str] = []
        for name in requested:
            if name not in result:
                result.append(name)
        return result
