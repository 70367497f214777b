"""post-receive entry point: gate, extract, resolve, dispatch, report.

Install as the repository's ``hooks/post-receive`` (or ``exec`` the
``ci-hook-post-receive`` console script from it). Git runs the hook inside
the receiving repository with the ref updates on stdin.
"""

import asyncio
import os
import sys
from collections.abc import Mapping, Sequence
from pathlib import Path
from typing import TextIO

import httpx
import structlog
from pydantic import ValidationError

from ci_hook.config import Settings
from ci_hook.logging_config import configure_logging
from ci_hook.services.backends import BackendAdapter, default_adapters
from ci_hook.services.ci_config import load_ci_config
from ci_hook.services.dispatcher import dispatch
from ci_hook.services.git_client import GitRevisionReader, RevisionReader, VCSToolError
from ci_hook.services.metadata import extract_metadata
from ci_hook.services.push_gate import (
    SKIP_OPTION,
    PushEventError,
    parse_push_options,
    read_push_event,
    should_skip,
)
from ci_hook.services.report import write_report

logger = structlog.get_logger()

EXIT_OK = 0
EXIT_METADATA_FAILED = 1


async def run_hook(
    settings: Settings,
    *,
    environ: Mapping[str, str] | None = None,
    stdin: TextIO | None = None,
    stdout: TextIO | None = None,
    reader: RevisionReader | None = None,
    repo_dir: str | os.PathLike[str] | None = None,
    adapters: Sequence[BackendAdapter] | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> int:
    """Run the dispatch pipeline once and return the process exit code.

    Only a failure to establish the pushed commit's identity (unreadable
    stdin or a failing git query) is fatal. Config problems and backend
    failures are logged and reported, and the hook still exits 0.
    """
    environ = os.environ if environ is None else environ
    stdin = stdin or sys.stdin
    repo_dir = repo_dir if repo_dir is not None else Path.cwd()
    reader = reader or GitRevisionReader(cwd=repo_dir)
    adapters = adapters if adapters is not None else default_adapters(settings)

    if should_skip(parse_push_options(environ)):
        logger.info("ci_skipped", push_option=SKIP_OPTION)
        return EXIT_OK

    try:
        event = read_push_event(stdin)
        metadata = extract_metadata(reader, event, repo_dir)
    except PushEventError as exc:
        logger.error("push_event_invalid", error=str(exc))
        return EXIT_METADATA_FAILED
    except VCSToolError as exc:
        logger.error(
            "metadata_extraction_failed",
            command=exc.command,
            returncode=exc.returncode,
            output=exc.output.strip(),
        )
        return EXIT_METADATA_FAILED

    config = load_ci_config(reader, event.new_rev, settings.ci_config_path)

    async with httpx.AsyncClient(transport=transport, timeout=settings.http_timeout) as client:
        results = await dispatch(client, adapters, metadata, config)

    write_report(results, stdout)
    return EXIT_OK


def main() -> None:
    """Console-script entry point.

    Invalid settings are logged and the push is left alone: nothing is
    dispatched, and the hook still exits 0.
    """
    try:
        settings = Settings()
    except ValidationError as exc:
        configure_logging()
        logger.error("settings_invalid", error=str(exc))
        sys.exit(EXIT_OK)
    configure_logging(json_logs=settings.json_logs, log_level=settings.log_level)
    sys.exit(asyncio.run(run_hook(settings)))


if __name__ == "__main__":
    main()
