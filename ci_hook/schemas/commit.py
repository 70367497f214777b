"""Pydantic models for commit metadata and the repository CI config."""

from pydantic import BaseModel, ConfigDict, Field


class CommitMetadata(BaseModel):
    """Everything the CI backends need to know about the pushed commit.

    Built once per push and shared read-only by every backend adapter.
    """

    model_config = ConfigDict(frozen=True)

    repo_name: str
    branch: str
    commit: str
    message: str
    author_name: str
    author_email: str


class TektonConfig(BaseModel):
    """Tekton section of ``ci.yaml``."""

    pipeline: str | None = None


class CIConfig(BaseModel):
    """Repository-embedded CI configuration (``ci.yaml``).

    Every field is optional; a repository without the file gets the
    defaults.
    """

    tekton: TektonConfig = Field(default_factory=TektonConfig)
