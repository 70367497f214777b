"""Backend dispatcher: trigger every adapter and contain its failures.

Every adapter outcome, including missing credentials, transport errors,
non-2xx responses and undecodable bodies, becomes a ``BackendResult``.
Nothing raised by one adapter reaches another adapter or the hook's exit
code.
"""

import asyncio
from collections.abc import Sequence

import httpx
import structlog
from pydantic import ValidationError

from ci_hook.schemas.backends import BackendResult
from ci_hook.schemas.commit import CIConfig, CommitMetadata
from ci_hook.services.backends import BackendAdapter, MissingCredentialsError

logger = structlog.get_logger()

# Response bodies longer than this are truncated in error logs.
MAX_LOGGED_BODY_CHARS = 2_000


def _failed(adapter: BackendAdapter, summary: str) -> BackendResult:
    return BackendResult(backend=adapter.name, succeeded=False, summary=summary)


async def run_adapter(
    client: httpx.AsyncClient,
    adapter: BackendAdapter,
    metadata: CommitMetadata,
    config: CIConfig,
) -> BackendResult:
    """Build, send and parse one adapter's trigger request.

    Returns:
        A successful result carrying the adapter's summary line, or a failed
        result whose summary describes what went wrong. Never raises.
    """
    log = logger.bind(backend=adapter.name)

    try:
        request = adapter.build_request(metadata, config)
    except MissingCredentialsError as exc:
        log.error("backend_trigger_failed", reason="missing_credentials", error=str(exc))
        return _failed(adapter, str(exc))
    except Exception as exc:
        log.exception("backend_trigger_failed", reason="request_build_error")
        return _failed(adapter, str(exc) or type(exc).__name__)

    try:
        response = await client.post(request.url, content=request.body, headers=request.headers)
        response.raise_for_status()
        summary = adapter.parse_response(response.content)
    except httpx.HTTPStatusError as exc:
        resp = exc.response
        log.error(
            "backend_trigger_failed",
            reason="unexpected_status",
            url=request.url,
            status_code=resp.status_code,
            body=resp.text[:MAX_LOGGED_BODY_CHARS],
        )
        return _failed(adapter, f"unexpected response: {resp.status_code} {resp.reason_phrase}")
    except httpx.HTTPError as exc:
        log.error("backend_trigger_failed", reason="transport", url=request.url, error=str(exc))
        return _failed(adapter, str(exc) or type(exc).__name__)
    except ValidationError as exc:
        log.error("backend_trigger_failed", reason="invalid_response", error=str(exc))
        return _failed(adapter, f"invalid response: {exc.errors(include_url=False)[0]['msg']}")
    except Exception as exc:
        log.exception("backend_trigger_failed", reason="unexpected_error")
        return _failed(adapter, str(exc) or type(exc).__name__)

    log.info("backend_triggered", summary=summary)
    return BackendResult(backend=adapter.name, succeeded=True, summary=summary)


async def dispatch(
    client: httpx.AsyncClient,
    adapters: Sequence[BackendAdapter],
    metadata: CommitMetadata,
    config: CIConfig,
) -> list[BackendResult]:
    """Trigger all adapters concurrently and return results in adapter order."""
    results = await asyncio.gather(
        *(run_adapter(client, adapter, metadata, config) for adapter in adapters)
    )
    return list(results)
