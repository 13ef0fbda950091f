"""
Environment configuration.

Loads ``INTAKE_*`` settings from the environment and ``.env`` and turns them
into an :class:`~intake.mapping.config.ImportConfig` for a run.
"""

from typing import Optional

from dotenv import load_dotenv
from pydantic import field_validator
from pydantic_settings import BaseSettings

from intake.logger import resolve_level
from intake.mapping.config import DEFAULT_CONFIG, GrandparentSuffix, ImportConfig, LinkFailurePolicy

load_dotenv()


class Settings(BaseSettings):
    """
    Application settings, loaded automatically from the environment.

    Attributes:
        INTAKE_COUNTRY_CODE / INTAKE_TRUNK_PREFIX: phone normalisation
        INTAKE_GRANDPARENT_SUFFIX_POLICY: ``dependent`` (301+) or ``separate`` (401+)
        INTAKE_LEGACY_LINK_POLICY / INTAKE_ADHOC_LINK_POLICY: ``silent`` or ``record``
        INTAKE_SENIOR_AGE_THRESHOLD: age above which dependents need the Premium tier
        INTAKE_RECOMPUTE_LEGACY_PREMIUMS: recompute premiums for legacy rows
        INTAKE_PROFILE_PATH: optional YAML profile with alias/default overrides
        INTAKE_LOG_LEVEL: logging level name
    """
    INTAKE_COUNTRY_CODE: str = "263"
    INTAKE_TRUNK_PREFIX: str = "0"
    INTAKE_GRANDPARENT_SUFFIX_POLICY: GrandparentSuffix = GrandparentSuffix.DEPENDENT
    INTAKE_LEGACY_LINK_POLICY: LinkFailurePolicy = LinkFailurePolicy.SILENT
    INTAKE_ADHOC_LINK_POLICY: LinkFailurePolicy = LinkFailurePolicy.RECORD
    INTAKE_SENIOR_AGE_THRESHOLD: int = 65
    INTAKE_RECOMPUTE_LEGACY_PREMIUMS: bool = True
    INTAKE_PROFILE_PATH: str = ""
    INTAKE_LOG_LEVEL: str = "INFO"

    @field_validator("INTAKE_COUNTRY_CODE", "INTAKE_TRUNK_PREFIX")
    @classmethod
    def validate_digits(cls, v: str) -> str:
        """Phone prefixes must be digits only."""
        v = (v or "").strip()
        if v and not v.isdigit():
            raise ValueError(f"expected digits only, got {v!r}")
        return v

    @field_validator("INTAKE_LOG_LEVEL")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        resolve_level(v)
        return v

    @field_validator("INTAKE_GRANDPARENT_SUFFIX_POLICY", "INTAKE_LEGACY_LINK_POLICY",
                     "INTAKE_ADHOC_LINK_POLICY", mode="before")
    @classmethod
    def lower_policy(cls, v):
        return v.strip().lower() if isinstance(v, str) else v

    class Config:
        env_file = ".env"
        case_sensitive = False

    def import_config(self, base: ImportConfig = DEFAULT_CONFIG) -> ImportConfig:
        return base.with_overrides(
            country_code=self.INTAKE_COUNTRY_CODE,
            trunk_prefix=self.INTAKE_TRUNK_PREFIX,
            grandparent_suffix=self.INTAKE_GRANDPARENT_SUFFIX_POLICY,
            legacy_link_policy=self.INTAKE_LEGACY_LINK_POLICY,
            adhoc_link_policy=self.INTAKE_ADHOC_LINK_POLICY,
            senior_age_threshold=self.INTAKE_SENIOR_AGE_THRESHOLD,
            recompute_legacy_premiums=self.INTAKE_RECOMPUTE_LEGACY_PREMIUMS,
        )


# Global singleton, avoids reloading configuration
_settings_instance: Optional[Settings] = None


def get_settings() -> Settings:
    """Return the cached Settings instance, creating it on first use."""
    global _settings_instance
    if _settings_instance is None:
        _settings_instance = Settings()
    return _settings_instance


def reset_settings() -> None:
    """Drop the cached instance so the next call re-reads the environment."""
    global _settings_instance
    _settings_instance = None
