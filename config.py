"""Application configuration."""
import os
from dataclasses import dataclass, field
from typing import List, Optional


def _split_codes(value: str) -> List[str]:
    return [code.strip().lower() for code in value.split(",") if code.strip()]


def _env_flag(name: str) -> bool:
    return os.getenv(name, "").strip().lower() in ("1", "true", "yes", "on")


@dataclass
class DestinationApiConfig:
    """Connection settings of one destination REST API."""

    base_url: str = "http://localhost:9000"
    api_token: str = ""  # read from .env or the environment
    timeout: int = 60

    @classmethod
    def medusa_from_env(cls) -> "DestinationApiConfig":
        """Load commerce platform settings from environment variables."""
        return cls(
            base_url=os.getenv("MEDUSA_API_URL", "http://localhost:9000"),
            api_token=os.getenv("MEDUSA_API_TOKEN", ""),
            timeout=int(os.getenv("MEDUSA_API_TIMEOUT", "60")),
        )

    @classmethod
    def strapi_from_env(cls) -> "DestinationApiConfig":
        """Load content platform settings from environment variables."""
        return cls(
            base_url=os.getenv("STRAPI_API_URL", "http://localhost:1337"),
            api_token=os.getenv("STRAPI_API_TOKEN", ""),
            timeout=int(os.getenv("STRAPI_API_TIMEOUT", "60")),
        )


@dataclass
class AppConfig:
    """Application configuration."""

    input_dir: str = "./data/source"
    output_dir: str = "./output"
    report_dir: str = "./reports"
    mapping_file: Optional[str] = None  # bundled field-mapping.json when unset
    rules_file: Optional[str] = None  # bundled validation-rules.json when unset
    regions: List[str] = field(default_factory=lambda: ["nl"])
    languages: List[str] = field(default_factory=list)
    default_region: str = "nl"
    force_import: bool = False
    cache_ttl: int = 300
    medusa: DestinationApiConfig = None
    strapi: DestinationApiConfig = None

    def __post_init__(self):
        """Initialize default values."""
        if self.medusa is None:
            self.medusa = DestinationApiConfig.medusa_from_env()
        if self.strapi is None:
            self.strapi = DestinationApiConfig.strapi_from_env()

    @classmethod
    def from_env(cls) -> "AppConfig":
        """Load config from environment variables."""
        regions = _split_codes(os.getenv("MIGRATION_REGIONS", "nl"))
        return cls(
            input_dir=os.getenv("MIGRATION_INPUT_DIR", "./data/source"),
            output_dir=os.getenv("MIGRATION_OUTPUT_DIR", "./output"),
            report_dir=os.getenv("MIGRATION_REPORT_DIR", "./reports"),
            mapping_file=os.getenv("MIGRATION_MAPPING_FILE") or None,
            rules_file=os.getenv("MIGRATION_RULES_FILE") or None,
            regions=regions,
            languages=_split_codes(os.getenv("MIGRATION_LANGUAGES", "")),
            default_region=regions[0] if regions else "nl",
            force_import=_env_flag("FORCE_IMPORT"),
            cache_ttl=int(os.getenv("CONTENT_CACHE_TTL", "300")),
            medusa=DestinationApiConfig.medusa_from_env(),
            strapi=DestinationApiConfig.strapi_from_env(),
        )


# Global instance
app_config = AppConfig.from_env()
