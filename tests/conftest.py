"""Shared test fixtures: canned git data, commit metadata, and settings."""

import pytest

from ci_hook.config import Settings
from ci_hook.schemas.commit import CIConfig, CommitMetadata
from ci_hook.services.git_client import InMemoryRevisionReader

OLD_REV = "0000000000000000000000000000000000000000"
NEW_REV = "abc123"
REF_NAME = "refs/heads/main"


@pytest.fixture
def metadata() -> CommitMetadata:
    """The reference commit: abc123 on main by Jane Doe."""
    return CommitMetadata(
        repo_name="my.repo",
        branch="main",
        commit=NEW_REV,
        message="fix bug",
        author_name="Jane Doe",
        author_email="jane@example.com",
    )


@pytest.fixture
def empty_config() -> CIConfig:
    """A repository without ``ci.yaml``."""
    return CIConfig()


@pytest.fixture
def reader() -> InMemoryRevisionReader:
    """An in-memory git with the reference commit and no ``ci.yaml``."""
    return InMemoryRevisionReader(
        branches={REF_NAME: "main"},
        commits={
            NEW_REV: {
                "%B": "fix bug",
                "%an": "Jane Doe",
                "%ae": "jane@example.com",
            }
        },
    )


@pytest.fixture
def settings() -> Settings:
    """Settings with both backends fully configured."""
    return Settings(
        buildkite_org_slug="acme",
        buildkite_api_token="bk_token",
        buildkite_api_url="https://api.buildkite.test",
        tekton_triggers_endpoint="http://el-push.tekton.test:8080",
    )


@pytest.fixture
def push_stdin() -> str:
    """A single post-receive input line for the reference commit."""
    return f"{OLD_REV} {NEW_REV} {REF_NAME}\n"
