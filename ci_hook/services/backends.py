"""CI backend adapters with protocol-based swappable implementations.

Each adapter knows how to turn commit metadata into one backend's trigger
request and how to read that backend's acknowledgement. Adapters never
perform I/O themselves; ``ci_hook.services.dispatcher`` sends the request
and contains every failure.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Protocol

from ci_hook.schemas.backends import (
    BuildkiteAuthor,
    BuildkitePayload,
    BuildkiteResponse,
    TektonPayload,
    TektonResponse,
    TriggerRequest,
)

if TYPE_CHECKING:
    from ci_hook.config import Settings
    from ci_hook.schemas.commit import CIConfig, CommitMetadata

_JSON_HEADERS = {"Content-Type": "application/json"}


class MissingCredentialsError(Exception):
    """The adapter's credentials are not configured; it cannot be triggered."""


class BackendAdapter(Protocol):
    """Protocol for a CI backend trigger."""

    name: str

    def build_request(self, metadata: CommitMetadata, config: CIConfig) -> TriggerRequest:
        """Build the outbound trigger request.

        Raises:
            MissingCredentialsError: If required credentials are absent.
        """
        ...

    def parse_response(self, body: bytes) -> str:
        """Decode a 2xx response body into the one-line report summary.

        Raises:
            pydantic.ValidationError: If the body is not the expected JSON.
        """
        ...


def sanitize_repo_name(name: str) -> str:
    """Map a repository name onto a Buildkite pipeline slug.

    Buildkite reserves ``.`` in pipeline slugs, so each one becomes ``-dot-``.
    """
    return name.replace(".", "-dot-")


class BuildkiteAdapter:
    """Trigger a build through the Buildkite REST API.

    The pipeline slug is the sanitized repository name, so every repository
    must have a matching pipeline in the organization.
    """

    name = "buildkite"

    def __init__(
        self,
        org_slug: str,
        api_token: str,
        api_url: str = "https://api.buildkite.com",
    ) -> None:
        self._org_slug = org_slug
        self._api_token = api_token
        self._api_url = api_url.rstrip("/")

    def build_request(self, metadata: CommitMetadata, config: CIConfig) -> TriggerRequest:
        """Build the create-build call; ``config`` has no Buildkite fields."""
        if not self._org_slug:
            raise MissingCredentialsError("no BUILDKITE_ORG_SLUG found")
        if not self._api_token:
            raise MissingCredentialsError("no BUILDKITE_API_TOKEN found")

        pipeline = sanitize_repo_name(metadata.repo_name)
        payload = BuildkitePayload(
            commit=metadata.commit,
            branch=metadata.branch,
            message=metadata.message,
            author=BuildkiteAuthor(name=metadata.author_name, email=metadata.author_email),
        )
        return TriggerRequest(
            url=f"{self._api_url}/v2/organizations/{self._org_slug}/pipelines/{pipeline}/builds",
            headers={**_JSON_HEADERS, "Authorization": f"Bearer {self._api_token}"},
            body=payload.model_dump_json().encode(),
        )

    def parse_response(self, body: bytes) -> str:
        """Summarize the created build as ``<state>:\\t<web_url>``."""
        response = BuildkiteResponse.model_validate_json(body)
        return f"{response.state}:\t{response.web_url}"


class TektonAdapter:
    """Trigger a pipeline run through a Tekton Triggers EventListener.

    The EventListener is expected to be reachable without authentication;
    ``tektonPipeline`` is only sent when the repository's ``ci.yaml`` names one.
    """

    name = "tekton"

    def __init__(self, endpoint: str) -> None:
        self._endpoint = endpoint

    def build_request(self, metadata: CommitMetadata, config: CIConfig) -> TriggerRequest:
        """Build the EventListener call."""
        if not self._endpoint:
            raise MissingCredentialsError("no TEKTON_TRIGGERS_ENDPOINT provided")

        payload = TektonPayload(
            repo=metadata.repo_name,
            branch=metadata.branch,
            commit=metadata.commit,
            message=metadata.message,
            author=metadata.author_name,
            email=metadata.author_email,
            tekton_pipeline=config.tekton.pipeline or None,
        )
        return TriggerRequest(
            url=self._endpoint,
            headers=dict(_JSON_HEADERS),
            body=payload.model_dump_json(by_alias=True, exclude_none=True).encode(),
        )

    def parse_response(self, body: bytes) -> str:
        """Summarize the accepted event as ``event-id:\\t<id>``."""
        response = TektonResponse.model_validate_json(body)
        return f"event-id:\t{response.event_id}"


def default_adapters(settings: Settings) -> list[BackendAdapter]:
    """Return the configured adapters in report order."""
    return [
        BuildkiteAdapter(
            org_slug=settings.buildkite_org_slug,
            api_token=settings.buildkite_api_token,
            api_url=settings.buildkite_api_url,
        ),
        TektonAdapter(endpoint=settings.tekton_triggers_endpoint),
    ]
