"""CDI - Commitment to Development Index data pipeline."""
from __future__ import annotations

from datetime import datetime
from pathlib import Path

from cdi.core import StageContext, StageRunner, registry
from cdi.core.utils import pipeline_version
from cdi.settings import Settings

__all__ = [
    "__version__",
    "StageContext",
    "StageRunner",
    "Settings",
    "registry",
    "bootstrap",
    "create_default_context",
]


def __getattr__(name: str):  # pragma: no cover - passthrough to package metadata
    if name == "__version__":
        return pipeline_version()
    raise AttributeError(name)


def bootstrap() -> None:
    """Import stage modules to ensure registration has occurred."""

    from cdi import content, export, scoring  # noqa: F401


def create_default_context(settings: Settings | None = None) -> StageContext:
    """Construct a default :class:`StageContext` for command-line runs."""

    settings = settings or Settings.load()
    settings.ensure_directories()
    run_id = datetime.utcnow().strftime("%Y%m%d%H%M%S")
    return StageContext(
        settings=settings,
        run_id=run_id,
        timestamp=datetime.utcnow(),
        workspace=Path.cwd(),
    )
