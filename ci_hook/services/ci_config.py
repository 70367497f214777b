"""Repository-embedded CI configuration, read at the pushed revision.

The file is looked up in the pushed commit rather than any working copy, so
the configuration honoured is exactly the one committed with the push.
Most repositories never add one; every failure degrades to the defaults.

The file is YAML (``ci.yaml`` unless ``CI_CONFIG_PATH`` says otherwise).
Repositories that still carry a CUE ``ci.cue`` from the earlier hook get no
override until they convert it, e.g. ``cue export --out yaml ci.cue > ci.yaml``.
The schema is unchanged: ``tekton.pipeline``.
"""

import structlog
import yaml
from pydantic import ValidationError

from ci_hook.schemas.commit import CIConfig
from ci_hook.services.git_client import RevisionReader, VCSToolError

logger = structlog.get_logger()


def load_ci_config(
    reader: RevisionReader,
    rev: str,
    path: str,
) -> CIConfig:
    """Load and validate ``path`` as of ``rev``.

    Returns:
        The decoded config, or an all-defaults ``CIConfig`` if the file is
        missing, unreadable, not valid YAML, or does not match the schema.
    """
    try:
        raw = reader.read_file_at_revision(rev, path)
        data = yaml.safe_load(raw)
        if data is None:
            return CIConfig()
        return CIConfig.model_validate(data)
    except (VCSToolError, yaml.YAMLError, ValidationError) as exc:
        logger.warning("ci_config_unavailable", rev=rev, path=path, error=str(exc))
        return CIConfig()
