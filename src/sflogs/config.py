"""Configuration for sflogs."""

from dataclasses import dataclass

DEFAULT_API_VERSION = "58.0"


@dataclass(frozen=True)
class Config:
    """Connection settings for one Salesforce org."""

    instance_url: str = ""
    session_token: str = ""
    api_version: str = DEFAULT_API_VERSION

    @property
    def base_url(self) -> str:
        return f"{self.instance_url.rstrip('/')}/services/data/v{self.api_version}"

    @property
    def auth_headers(self) -> dict[str, str]:
        return {
            "Authorization": f"Bearer {self.session_token}",
            "Content-Type": "application/json",
        }

    def missing_fields(self) -> list[str]:
        """Names of required settings that are not set."""
        missing: list[str] = []
        if not self.instance_url:
            missing.append("instance_url")
        if not self.session_token:
            missing.append("session_token")
        return missing
