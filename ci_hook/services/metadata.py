"""Commit metadata extraction for the pushed revision."""

import os
from pathlib import Path

import structlog

from ci_hook.schemas.commit import CommitMetadata
from ci_hook.schemas.push import PushEvent
from ci_hook.services.git_client import RevisionReader

logger = structlog.get_logger()

MESSAGE_FORMAT = "%B"
AUTHOR_NAME_FORMAT = "%an"
AUTHOR_EMAIL_FORMAT = "%ae"


def repo_name_from_dir(repo_dir: str | os.PathLike[str]) -> str:
    """Derive the repository name from its directory (``/srv/git/app.git`` -> ``app``)."""
    return Path(repo_dir).resolve().name.removesuffix(".git")


def extract_metadata(
    reader: RevisionReader,
    event: PushEvent,
    repo_dir: str | os.PathLike[str],
) -> CommitMetadata:
    """Build the commit metadata every backend adapter consumes.

    All fields are mandatory, so any git failure propagates as
    ``VCSToolError`` and no partial record is ever returned.
    """
    commit = event.new_rev
    metadata = CommitMetadata(
        repo_name=repo_name_from_dir(repo_dir),
        branch=reader.resolve_ref_to_branch(event.ref_name),
        commit=commit,
        message=reader.commit_field(commit, MESSAGE_FORMAT),
        author_name=reader.commit_field(commit, AUTHOR_NAME_FORMAT),
        author_email=reader.commit_field(commit, AUTHOR_EMAIL_FORMAT),
    )
    logger.debug(
        "metadata_extracted",
        repo=metadata.repo_name,
        branch=metadata.branch,
        commit=metadata.commit,
    )
    return metadata
