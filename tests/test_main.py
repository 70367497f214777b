"""End-to-end tests for the post-receive pipeline.

Git is replaced by ``InMemoryRevisionReader`` and both backends by a single
``httpx.MockTransport`` that routes on host.
"""

import io
import json
from unittest.mock import patch

import httpx
import pytest
from structlog.testing import capture_logs

from ci_hook.config import Settings
from ci_hook.main import EXIT_METADATA_FAILED, EXIT_OK, main, run_hook
from ci_hook.services.git_client import InMemoryRevisionReader

REPO_DIR = "/srv/git/my.repo.git"

BUILD_URL = "https://buildkite.com/acme/my-dot-repo/builds/7"

SKIP_ENV = {"GIT_PUSH_OPTION_COUNT": "1", "GIT_PUSH_OPTION_0": "ci.skip"}


class RecordingBackends:
    """MockTransport handler answering like Buildkite and Tekton."""

    def __init__(self, buildkite_status: int = 201, tekton_status: int = 202) -> None:
        self.requests: list[httpx.Request] = []
        self.buildkite_status = buildkite_status
        self.tekton_status = tekton_status

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if request.url.host == "api.buildkite.test":
            return httpx.Response(
                self.buildkite_status,
                json={"state": "scheduled", "web_url": BUILD_URL},
            )
        return httpx.Response(
            self.tekton_status, json={"eventListenerUID": "uid-1", "eventID": "evt-1"}
        )

    @property
    def hosts(self) -> list[str]:
        return [r.url.host for r in self.requests]


async def _run(settings: Settings, reader, stdin: str, backends, environ=None, stdout=None) -> int:
    return await run_hook(
        settings,
        environ=environ or {},
        stdin=io.StringIO(stdin),
        stdout=stdout if stdout is not None else io.StringIO(),
        reader=reader,
        repo_dir=REPO_DIR,
        transport=httpx.MockTransport(backends),
    )


@pytest.mark.asyncio
async def test_skip_option_makes_no_requests(settings, reader) -> None:
    """-o ci.skip exits 0 without git queries or HTTP requests."""
    backends = RecordingBackends()
    stdout = io.StringIO()

    with capture_logs() as logs:
        code = await _run(settings, reader, "", backends, environ=SKIP_ENV, stdout=stdout)

    assert code == EXIT_OK
    assert backends.requests == []
    assert reader.calls == []
    assert stdout.getvalue() == ""
    assert logs[0]["event"] == "ci_skipped"


@pytest.mark.asyncio
async def test_full_run_triggers_both_backends(settings, reader, push_stdin) -> None:
    """Both backends are triggered and reported in order."""
    backends = RecordingBackends()
    stdout = io.StringIO()

    code = await _run(settings, reader, push_stdin, backends, stdout=stdout)

    assert code == EXIT_OK
    assert sorted(backends.hosts) == ["api.buildkite.test", "el-push.tekton.test"]
    assert stdout.getvalue() == (
        "\n"
        "\tbuildkite: scheduled:\thttps://buildkite.com/acme/my-dot-repo/builds/7\n"
        "\ttekton: event-id:\tevt-1\n"
        "\n"
    )
    bk = next(r for r in backends.requests if r.url.host == "api.buildkite.test")
    assert bk.url.path == "/v2/organizations/acme/pipelines/my-dot-repo/builds"


@pytest.mark.asyncio
async def test_unrelated_push_options_do_not_skip(settings, reader, push_stdin) -> None:
    """Push options other than ci.skip leave dispatch untouched."""
    backends = RecordingBackends()
    environ = {"GIT_PUSH_OPTION_COUNT": "1", "GIT_PUSH_OPTION_0": "notify=team"}

    code = await _run(settings, reader, push_stdin, backends, environ=environ)

    assert code == EXIT_OK
    assert len(backends.requests) == 2


@pytest.mark.asyncio
async def test_config_override_reaches_tekton_only(settings, reader, push_stdin) -> None:
    """ci.yaml at the pushed revision sets tektonPipeline on the Tekton payload."""
    reader.files[("abc123", "ci.yaml")] = b"tekton:\n  pipeline: release\n"
    backends = RecordingBackends()

    await _run(settings, reader, push_stdin, backends)

    bodies = {r.url.host: json.loads(r.content) for r in backends.requests}
    assert bodies["el-push.tekton.test"]["tektonPipeline"] == "release"
    assert bodies["el-push.tekton.test"]["repo"] == "my.repo"
    assert "tektonPipeline" not in bodies["api.buildkite.test"]


@pytest.mark.asyncio
async def test_missing_buildkite_credentials_still_triggers_tekton(
    reader, push_stdin, monkeypatch
) -> None:
    """An unconfigured backend is reported while the other one still runs."""
    monkeypatch.delenv("BUILDKITE_ORG_SLUG", raising=False)
    monkeypatch.delenv("BUILDKITE_API_TOKEN", raising=False)
    settings = Settings(tekton_triggers_endpoint="http://el-push.tekton.test:8080")
    backends = RecordingBackends()
    stdout = io.StringIO()

    code = await _run(settings, reader, push_stdin, backends, stdout=stdout)

    assert code == EXIT_OK
    assert backends.hosts == ["el-push.tekton.test"]
    assert "\tbuildkite: no BUILDKITE_ORG_SLUG found\n" in stdout.getvalue()
    assert "\ttekton: event-id:\tevt-1\n" in stdout.getvalue()


@pytest.mark.asyncio
async def test_downed_backends_still_exit_zero(settings, reader, push_stdin) -> None:
    """Non-2xx from every backend is reported, and the hook still succeeds."""
    backends = RecordingBackends(buildkite_status=502, tekton_status=500)
    stdout = io.StringIO()

    code = await _run(settings, reader, push_stdin, backends, stdout=stdout)

    assert code == EXIT_OK
    report = stdout.getvalue()
    assert "\tbuildkite: unexpected response: 502" in report
    assert "\ttekton: unexpected response: 500" in report


@pytest.mark.asyncio
async def test_metadata_failure_is_fatal(settings, push_stdin) -> None:
    """Without commit identity nothing is dispatched and the hook fails."""
    backends = RecordingBackends()
    stdout = io.StringIO()

    with capture_logs() as logs:
        code = await _run(settings, InMemoryRevisionReader(), push_stdin, backends, stdout=stdout)

    assert code == EXIT_METADATA_FAILED
    assert backends.requests == []
    assert stdout.getvalue() == ""
    assert logs[-1]["event"] == "metadata_extraction_failed"
    assert logs[-1]["log_level"] == "error"


@pytest.mark.asyncio
async def test_malformed_stdin_is_fatal(settings, reader) -> None:
    """Missing ref update input is treated like a metadata failure."""
    backends = RecordingBackends()

    code = await _run(settings, reader, "garbage\n", backends)

    assert code == EXIT_METADATA_FAILED
    assert backends.requests == []
    assert reader.calls == []


def test_main_exits_with_pipeline_code(monkeypatch) -> None:
    """main() builds settings from the environment and exits with run_hook's code."""
    monkeypatch.setenv("GIT_PUSH_OPTION_COUNT", "1")
    monkeypatch.setenv("GIT_PUSH_OPTION_0", "ci.skip")
    monkeypatch.setenv("LOG_LEVEL", "DEBUG")
    monkeypatch.delenv("JSON_LOGS", raising=False)

    with (
        patch("ci_hook.main.configure_logging") as mock_configure,
        pytest.raises(SystemExit) as exc_info,
    ):
        main()

    assert exc_info.value.code == EXIT_OK
    mock_configure.assert_called_once_with(json_logs=False, log_level="DEBUG")


def test_main_invalid_settings_exits_zero_without_dispatch(monkeypatch) -> None:
    """A malformed setting is logged and the push still succeeds, with nothing triggered."""
    monkeypatch.setenv("HTTP_TIMEOUT", "thirty")
    monkeypatch.setenv("GIT_PUSH_OPTION_COUNT", "1")
    monkeypatch.setenv("GIT_PUSH_OPTION_0", "ci.skip")

    with (
        patch("ci_hook.main.configure_logging"),
        patch("ci_hook.main.run_hook") as mock_run_hook,
        capture_logs() as logs,
        pytest.raises(SystemExit) as exc_info,
    ):
        main()

    assert exc_info.value.code == EXIT_OK
    mock_run_hook.assert_not_called()
    assert logs[-1]["event"] == "settings_invalid"
    assert logs[-1]["log_level"] == "error"
    assert "http_timeout" in logs[-1]["error"]


@pytest.mark.asyncio
async def test_config_path_comes_from_settings(settings, reader, push_stdin) -> None:
    """The repository config is read from the path configured in Settings."""
    custom = settings.model_copy(update={"ci_config_path": ".ci/pipeline.yaml"})
    reader.files[("abc123", ".ci/pipeline.yaml")] = b"tekton:\n  pipeline: nightly\n"
    backends = RecordingBackends()

    await _run(custom, reader, push_stdin, backends)

    assert ("read_file_at_revision", "abc123", ".ci/pipeline.yaml") in reader.calls
    tekton = next(r for r in backends.requests if r.url.host == "el-push.tekton.test")
    assert json.loads(tekton.content)["tektonPipeline"] == "nightly"


def test_settings_default_config_path_is_ci_yaml() -> None:
    """The default config location is defined once, on Settings."""
    assert Settings.model_fields["ci_config_path"].default == "ci.yaml"
