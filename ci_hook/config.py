"""Hook configuration loaded from environment variables."""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Hook settings resolved once per invocation and passed down explicitly."""

    model_config = SettingsConfigDict(case_sensitive=False)

    log_level: str = "INFO"
    json_logs: bool = False

    # Repository-embedded config, read at the pushed revision
    ci_config_path: str = "ci.yaml"

    # Buildkite REST trigger
    buildkite_org_slug: str = ""
    buildkite_api_token: str = ""
    buildkite_api_url: str = "https://api.buildkite.com"

    # Tekton EventListener trigger
    tekton_triggers_endpoint: str = ""

    http_timeout: float = 30.0
