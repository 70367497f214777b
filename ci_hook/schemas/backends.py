"""Pydantic models for CI backend requests, responses, and outcomes."""

from pydantic import BaseModel, ConfigDict, Field


class BuildkiteAuthor(BaseModel):
    """Author block of a Buildkite create-build request."""

    name: str
    email: str


class BuildkitePayload(BaseModel):
    """Body for ``POST /v2/organizations/{org}/pipelines/{pipeline}/builds``.

    Reference: https://buildkite.com/docs/apis/rest-api/builds#create-a-build
    """

    commit: str
    branch: str
    message: str
    author: BuildkiteAuthor


class BuildkiteResponse(BaseModel):
    """The subset of a Buildkite build object the hook reports back."""

    web_url: str = ""
    state: str = ""


class TektonPayload(BaseModel):
    """Body posted to a Tekton Triggers EventListener."""

    repo: str
    branch: str
    commit: str
    message: str
    author: str
    email: str
    tekton_pipeline: str | None = Field(default=None, serialization_alias="tektonPipeline")


class TektonResponse(BaseModel):
    """EventListener acknowledgement for an accepted event."""

    model_config = ConfigDict(populate_by_name=True)

    event_listener_uid: str = Field(default="", alias="eventListenerUID")
    event_id: str = Field(default="", alias="eventID")


class TriggerRequest(BaseModel):
    """A fully built outbound trigger call, ready to send."""

    url: str
    headers: dict[str, str] = Field(default_factory=dict)
    body: bytes


class BackendResult(BaseModel):
    """Outcome of triggering one backend, as shown in the push report."""

    model_config = ConfigDict(frozen=True)

    backend: str
    succeeded: bool
    summary: str
