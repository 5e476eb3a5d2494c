"""Environment-driven configuration for the CDI pipeline."""
from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path


@dataclass(slots=True)
class Settings:
    """Runtime settings loaded from environment variables."""

    data_dir: Path
    output_dir: Path
    catalog_path: Path
    reports_dir: Path
    income_column: str
    income_transform: str
    year: int | None
    log_level: str

    @classmethod
    def load(cls) -> "Settings":
        """Load settings from environment variables with sensible defaults."""

        data_dir = Path(os.getenv("CDI_DATA_DIR", "data"))
        output_dir = Path(os.getenv("CDI_OUTPUT_DIR", "public/data"))
        catalog_path = Path(os.getenv("CDI_CATALOG", "config/cdi_catalog.yaml"))
        reports_dir = Path(
            os.getenv("CDI_REPORTS_DIR", str(data_dir / "country-reports"))
        )
        income_column = os.getenv("CDI_INCOME_COLUMN", "GNI per capita")
        income_transform = os.getenv("CDI_INCOME_TRANSFORM", "linear").lower()
        year_value = os.getenv("CDI_YEAR")
        year = int(year_value) if year_value else None
        log_level = os.getenv("LOG_LEVEL", "INFO")
        return cls(
            data_dir=data_dir,
            output_dir=output_dir,
            catalog_path=catalog_path,
            reports_dir=reports_dir,
            income_column=income_column,
            income_transform=income_transform,
            year=year,
            log_level=log_level,
        )

    @property
    def data_path(self) -> Path:
        """Location of the main ``cdi-data.json`` artifact."""

        return self.output_dir / "cdi-data.json"

    def ensure_directories(self) -> None:
        """Create directories required for the runtime to operate."""

        if not self.output_dir.exists():
            self.output_dir.mkdir(parents=True, exist_ok=True)
