"""Pydantic models for the post-receive hook input."""

from pydantic import BaseModel, ConfigDict


class PushEvent(BaseModel):
    """A single updated ref as reported on the hook's stdin.

    Git writes one ``<old-rev> <new-rev> <ref-name>`` line per updated ref;
    only the first is handled.
    """

    model_config = ConfigDict(frozen=True)

    old_rev: str
    new_rev: str
    ref_name: str
