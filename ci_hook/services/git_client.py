"""Git revision reader with protocol-based swappable implementations.

Production code uses ``GitRevisionReader`` which shells out to the ``git``
executable inside the repository the hook runs in.  Tests use
``InMemoryRevisionReader`` which serves canned refs, commit fields and file
contents without a repository on disk.
"""

from __future__ import annotations

import os
import subprocess
from typing import Protocol


class VCSToolError(Exception):
    """A git invocation failed or exited non-zero."""

    def __init__(self, command: list[str], returncode: int | None, output: str) -> None:
        self.command = command
        self.returncode = returncode
        self.output = output
        super().__init__(f"{' '.join(command)} exited with {returncode}: {output.strip()}")


class PathNotFoundAtRevision(VCSToolError):
    """The requested path does not exist in the requested revision."""


# git's wording when the object named by <rev>:<path> cannot be resolved
_MISSING_OBJECT_MARKERS = (
    "does not exist",
    "Not a valid object name",
    "exists on disk, but not in",
)


class RevisionReader(Protocol):
    """Protocol for the three read-only git queries the hook needs."""

    def resolve_ref_to_branch(self, ref: str) -> str:
        """Return the short branch name for a full ref (``refs/heads/x`` -> ``x``)."""
        ...

    def commit_field(self, commit: str, format_selector: str) -> str:
        """Return one ``git log --format`` field (e.g. ``%an``) of a commit."""
        ...

    def read_file_at_revision(self, rev: str, path: str) -> bytes:
        """Return the contents of ``path`` as committed in ``rev``."""
        ...


class GitRevisionReader:
    """Production reader backed by the ``git`` CLI.

    Commands run with list arguments (no shell) in ``cwd``, which defaults to
    the hook's working directory, i.e. the receiving repository.
    """

    def __init__(self, cwd: str | os.PathLike[str] | None = None, git: str = "git") -> None:
        self._cwd = os.fspath(cwd) if cwd is not None else None
        self._git = git

    def _run(self, *args: str) -> subprocess.CompletedProcess[bytes]:
        cmd = [self._git, *args]
        try:
            proc = subprocess.run(cmd, cwd=self._cwd, capture_output=True, check=False)  # noqa: S603
        except OSError as exc:
            raise VCSToolError(cmd, None, str(exc)) from exc
        if proc.returncode != 0:
            output = (proc.stdout + proc.stderr).decode("utf-8", errors="replace")
            raise VCSToolError(cmd, proc.returncode, output)
        return proc

    def _run_text(self, *args: str) -> str:
        return self._run(*args).stdout.decode("utf-8", errors="replace").strip()

    def resolve_ref_to_branch(self, ref: str) -> str:
        """Resolve ``ref`` with ``git rev-parse --abbrev-ref``."""
        return self._run_text("rev-parse", "--abbrev-ref", ref)

    def commit_field(self, commit: str, format_selector: str) -> str:
        """Read a single formatted field of ``commit`` via ``git log -1``."""
        return self._run_text("log", "-1", f"--format={format_selector}", commit, "--")

    def read_file_at_revision(self, rev: str, path: str) -> bytes:
        """Read a blob with ``git cat-file blob <rev>:<path>``.

        Raises:
            PathNotFoundAtRevision: If git reports the object does not exist.
            VCSToolError: On any other git failure.
        """
        try:
            return self._run("cat-file", "blob", f"{rev}:{path}").stdout
        except VCSToolError as exc:
            if exc.returncode is not None and any(
                marker in exc.output for marker in _MISSING_OBJECT_MARKERS
            ):
                raise PathNotFoundAtRevision(exc.command, exc.returncode, exc.output) from exc
            raise


class InMemoryRevisionReader:
    """Test double that serves canned data and records every call.

    Unknown refs, commits and paths fail the same way git does, with a
    ``VCSToolError`` (``PathNotFoundAtRevision`` for files).
    """

    def __init__(
        self,
        branches: dict[str, str] | None = None,
        commits: dict[str, dict[str, str]] | None = None,
        files: dict[tuple[str, str], bytes] | None = None,
    ) -> None:
        self.branches = branches or {}
        self.commits = commits or {}
        self.files = files or {}
        self.calls: list[tuple[str, ...]] = []

    def resolve_ref_to_branch(self, ref: str) -> str:
        """Return the canned branch for ``ref``."""
        self.calls.append(("resolve_ref_to_branch", ref))
        if ref not in self.branches:
            raise VCSToolError(["git", "rev-parse", "--abbrev-ref", ref], 128, "unknown ref")
        return self.branches[ref]

    def commit_field(self, commit: str, format_selector: str) -> str:
        """Return the canned field value for ``commit``."""
        self.calls.append(("commit_field", commit, format_selector))
        fields = self.commits.get(commit)
        if fields is None or format_selector not in fields:
            raise VCSToolError(
                ["git", "log", "-1", f"--format={format_selector}", commit, "--"],
                128,
                f"fatal: bad revision '{commit}'",
            )
        return fields[format_selector]

    def read_file_at_revision(self, rev: str, path: str) -> bytes:
        """Return the canned file content at ``rev``."""
        self.calls.append(("read_file_at_revision", rev, path))
        if (rev, path) not in self.files:
            raise PathNotFoundAtRevision(
                ["git", "cat-file", "blob", f"{rev}:{path}"],
                128,
                f"fatal: path '{path}' does not exist in '{rev}'",
            )
        return self.files[(rev, path)]
