"""Push-option gate and post-receive input parsing.

Git exposes ``git push -o key[=value]`` options to server-side hooks as
``GIT_PUSH_OPTION_COUNT`` plus ``GIT_PUSH_OPTION_0`` .. ``GIT_PUSH_OPTION_<n-1>``.
"""

from collections.abc import Mapping
from typing import TextIO

from ci_hook.schemas.push import PushEvent

SKIP_OPTION = "ci.skip"


class PushEventError(ValueError):
    """Raised when the hook's stdin does not carry a ``<old> <new> <ref>`` line."""


def parse_push_options(environ: Mapping[str, str]) -> dict[str, str]:
    """Collect push options from the hook environment.

    Entries are split on the first ``=``; an entry without one maps to an
    empty value. Later duplicates overwrite earlier ones. A missing or
    non-numeric count means no options.
    """
    try:
        count = int(environ.get("GIT_PUSH_OPTION_COUNT", "0"))
    except ValueError:
        count = 0

    options: dict[str, str] = {}
    for i in range(count):
        key, _, value = environ.get(f"GIT_PUSH_OPTION_{i}", "").partition("=")
        options[key] = value
    return options


def should_skip(options: Mapping[str, str]) -> bool:
    """Return True when the pusher opted out of CI with ``-o ci.skip``."""
    return SKIP_OPTION in options


def read_push_event(stream: TextIO) -> PushEvent:
    """Parse the first ref update line from the hook's stdin."""
    line = stream.readline()
    fields = line.split()
    if len(fields) != 3:
        raise PushEventError(f"expected '<old-rev> <new-rev> <ref-name>', got {line.strip()!r}")
    old_rev, new_rev, ref_name = fields
    return PushEvent(old_rev=old_rev, new_rev=new_rev, ref_name=ref_name)
