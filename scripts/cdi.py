"""Command line interface for the CDI data pipeline."""
from __future__ import annotations

import argparse
import logging
import logging.config
import os
from pathlib import Path
from typing import List, Optional, Sequence

from cdi import StageRunner, bootstrap, create_default_context, registry
from cdi.core.utils import pipeline_version
from cdi.settings import Settings


def load_environment(paths: Optional[Sequence[Path]] = None) -> None:
    """Populate ``os.environ`` from ``KEY=value`` files without overriding existing values."""

    candidates: List[Path] = list(paths or [])
    if not candidates:
        env_file = os.getenv("ENV_FILE")
        if env_file:
            candidates.append(Path(env_file))
        candidates.append(Path(".env"))

    for path in candidates:
        if not path.exists():
            continue
        with path.open("r", encoding="utf-8") as handle:
            for raw_line in handle:
                line = raw_line.strip()
                if not line or line.startswith("#") or "=" not in line:
                    continue
                key, _, value = line.partition("=")
                os.environ.setdefault(key.strip(), value.strip().strip('"').strip("'"))


logger = logging.getLogger("cdi.cli")


def configure_logging() -> None:
    """Configure logging from an INI file when one is available, else ``basicConfig``."""

    candidates: List[Path] = []
    config_env = os.getenv("LOGGING_CONFIG")
    if config_env:
        candidates.append(Path(config_env))
    candidates.append(Path("logging.ini"))

    for config_path in candidates:
        if not config_path.exists():
            continue
        if config_path.suffix.lower() not in {".ini", ".cfg"}:
            print(f"Skipping unsupported logging config {config_path}. Using default logging configuration.")
            continue
        try:
            logging.config.fileConfig(config_path, disable_existing_loggers=False)
        except (OSError, KeyError, ValueError) as exc:
            print(f"Failed to load logging config {config_path}: {exc}. Falling back to basic logging.")
            break
        return

    logging.basicConfig(
        level=os.getenv("LOG_LEVEL", "INFO").upper(),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


def _run(runner: StageRunner, stages: Optional[List[str]]) -> int:
    try:
        resolved = runner.resolve(stages)
    except ValueError as exc:
        print(f"Error: {exc}")
        return 2
    settings = Settings.load()
    context = create_default_context(settings)
    logger.info(
        "CDI pipeline %s running stages %s (data %s, output %s)",
        pipeline_version(),
        resolved,
        settings.data_dir,
        settings.output_dir,
    )
    timings = runner.run(resolved, context)
    logger.info(
        "Finished %d stage(s) in %.2fs",
        len(timings),
        sum(timings.values()),
    )
    return 0


def command_stages(_: argparse.Namespace, __: StageRunner) -> int:
    print("CDI Registered Stages:")
    for definition in registry.items():
        print(f"- {definition.name}: {definition.description} ({definition.module})")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Build the Commitment to Development Index data files.")
    subparsers = parser.add_subparsers(dest="command")
    subparsers.required = True

    parser_run = subparsers.add_parser("run", help="Run the full pipeline")
    parser_run.add_argument(
        "stages",
        nargs="*",
        help="Optional ordered list of stages to run instead of all registered stages.",
    )
    parser_run.set_defaults(func=lambda args, runner: _run(runner, args.stages or None))

    parser_stages = subparsers.add_parser("stages", help="List registered stages")
    parser_stages.set_defaults(func=command_stages)

    for definition in registry.items():
        sub = subparsers.add_parser(definition.name, help=f"Run only the {definition.name} stage")
        sub.set_defaults(func=lambda args, runner, name=definition.name: _run(runner, [name]))

    return parser


def main(argv: Optional[List[str]] = None) -> int:
    load_environment()
    configure_logging()
    bootstrap()
    runner = StageRunner(registry)
    parser = build_parser()
    args = parser.parse_args(argv)
    return args.func(args, runner)


if __name__ == "__main__":  # pragma: no cover - entry point for CLI usage
    raise SystemExit(main())
