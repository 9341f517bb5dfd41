"""Command-line entry point.

Usage:
    trifetch

Reads MONGODB_URI, SUPABASE_URL and SUPABASE_KEY (process environment or
./.env), queries all three backends, and prints one combined line.

Exit codes:
    0: Completed (individual backend failures are reported, not fatal)
    1: Configuration error; no backend was contacted
"""

from __future__ import annotations

import logging
import sys
from collections.abc import Mapping
from pathlib import Path

from trifetch.backends import DocumentBackend, RelationalBackend, RpcBackend
from trifetch.core.config import Settings
from trifetch.core.errors import ConfigError
from trifetch.worker.orchestrator import CombinedReport, Orchestrator

logger = logging.getLogger(__name__)


def build_orchestrator(settings: Settings) -> Orchestrator:
    """Wire the three backends from one Settings value."""
    return Orchestrator(
        rpc=RpcBackend(settings),
        relational=RelationalBackend(settings),
        document=DocumentBackend(settings),
        timeout_s=settings.fetch_timeout_s,
    )


def main(
    environ: Mapping[str, str] | None = None,
    env_file: Path | str | None = ".env",
    orchestrator: Orchestrator | None = None,
) -> int:
    """Run all backends once and print the combined outcome.

    Args:
        environ: Environment mapping (defaults to os.environ).
        env_file: Optional dotenv file.
        orchestrator: Pre-built orchestrator, bypassing backend wiring.

    Returns:
        Process exit code.
    """
    try:
        settings = Settings.from_env(environ=environ, env_file=env_file)
    except ConfigError as e:
        logging.basicConfig(level=logging.ERROR)
        logger.error("%s", e)
        return 1

    logging.basicConfig(
        level=getattr(logging, settings.log_level),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    if orchestrator is None:
        orchestrator = build_orchestrator(settings)

    report: CombinedReport = orchestrator.run()
    for failure in report.failures:
        logger.warning("%s: %s", failure.backend, failure.error)

    print(report.as_line())
    return 0


if __name__ == "__main__":
    sys.exit(main())
