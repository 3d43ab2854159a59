"""Application configuration."""
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional


def _env_flag(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def _env_list(name: str, default: List[str]) -> List[str]:
    value = os.getenv(name)
    if not value:
        return list(default)
    return [item.strip() for item in value.split(",") if item.strip()]


# These endpoints cannot/should not be generated
DEFAULT_SKIPPED_ENDPOINTS = [
    "duplications",  # numeric map keys
    "properties",  # deprecated, examples do not decode
    "favourites",  # deprecated in favour of favorites
    "paging",  # reserved for the paging helper
]

# "<endpoint>/<action>" pairs that should not be generated
DEFAULT_SKIPPED_ACTIONS = [
    "sources/index",
]


@dataclass
class SonarApiConfig:
    """Server connection configuration."""

    host: str = "http://localhost:9000"
    auth: str = ""  # raw Authorization header, e.g. "Basic YWRtaW46YWRtaW4="
    timeout: int = 10
    include_internals: bool = False

    @classmethod
    def from_env(cls) -> "SonarApiConfig":
        """Load config from environment variables."""
        return cls(
            host=os.getenv("SONAR_HOST", "http://localhost:9000"),
            auth=os.getenv("SONAR_AUTH", ""),
            timeout=int(os.getenv("SONAR_TIMEOUT", "10")),
            include_internals=_env_flag("SONAR_INCLUDE_INTERNALS"),
        )


@dataclass
class GeneratorConfig:
    """Code generation configuration."""

    output_dir: str = "./generated"
    overrides_file: Optional[str] = None
    cache_dir: Optional[str] = None
    cache_ttl: int = 3600
    workers: int = 8
    snapshot: bool = True
    skipped_endpoints: List[str] = field(default_factory=lambda: list(DEFAULT_SKIPPED_ENDPOINTS))
    skipped_actions: List[str] = field(default_factory=lambda: list(DEFAULT_SKIPPED_ACTIONS))

    @property
    def output_path(self) -> Path:
        return Path(self.output_dir)

    def is_endpoint_skipped(self, endpoint: str) -> bool:
        return endpoint in self.skipped_endpoints

    def is_action_skipped(self, endpoint: str, action: str) -> bool:
        return f"{endpoint}/{action}" in self.skipped_actions

    @classmethod
    def from_env(cls) -> "GeneratorConfig":
        """Load config from environment variables."""
        return cls(
            output_dir=os.getenv("CLIENTGEN_OUTPUT_DIR", "./generated"),
            overrides_file=os.getenv("CLIENTGEN_OVERRIDES") or None,
            cache_dir=os.getenv("CLIENTGEN_CACHE_DIR") or None,
            cache_ttl=int(os.getenv("CLIENTGEN_CACHE_TTL", "3600")),
            workers=int(os.getenv("CLIENTGEN_WORKERS", "8")),
            snapshot=_env_flag("CLIENTGEN_SNAPSHOT", True),
            skipped_endpoints=_env_list("CLIENTGEN_SKIPPED_ENDPOINTS", DEFAULT_SKIPPED_ENDPOINTS),
            skipped_actions=_env_list("CLIENTGEN_SKIPPED_ACTIONS", DEFAULT_SKIPPED_ACTIONS),
        )


@dataclass
class AppConfig:
    """Application configuration."""

    sonar_api: SonarApiConfig = None
    generator: GeneratorConfig = None

    def __post_init__(self):
        """Initialize default values."""
        if self.sonar_api is None:
            self.sonar_api = SonarApiConfig.from_env()
        if self.generator is None:
            self.generator = GeneratorConfig.from_env()

    @classmethod
    def from_env(cls) -> "AppConfig":
        """Load config from environment variables."""
        return cls(
            sonar_api=SonarApiConfig.from_env(),
            generator=GeneratorConfig.from_env(),
        )


# Global instance
app_config = AppConfig()
