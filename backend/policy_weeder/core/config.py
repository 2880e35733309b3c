"""
Engine configuration using Pydantic settings.
"""

from pydantic import BaseModel, ConfigDict, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from policy_weeder.models.analysis import WeightingMode


class Settings(BaseSettings):
    """Engine settings."""

    model_config = SettingsConfigDict(env_file=".env", case_sensitive=True, extra="ignore")

    # Grouping
    OVERLAP_THRESHOLD: int = 70
    DUPLICATE_THRESHOLD: int = 80  # Basic duplicate finder bar
    INCLUDE_DISABLED: bool = False
    WEIGHTING_MODE: WeightingMode = WeightingMode.WEIGHTED

    # Weeding
    STALE_REPORT_ONLY_DAYS: int = 30

    # Pairwise comparison
    COMPARISON_MAX_WORKERS: int = 1  # Above 1, compares each row on a thread pool
    PARALLEL_COMPARISON_MIN_POLICIES: int = 500  # Below this, compare sequentially

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = True


settings = Settings()


class AnalysisConfig(BaseModel):
    """Options recognized by one analysis pass."""

    model_config = ConfigDict(frozen=True)

    overlap_threshold: int = Field(70, ge=50, le=100, description="Grouping threshold in percent")
    duplicate_threshold: int = Field(80, ge=50, le=100, description="Basic duplicate finder threshold in percent")
    include_disabled: bool = Field(False, description="Group policies in every state, not only enabled ones")
    weighting_mode: WeightingMode = Field(WeightingMode.WEIGHTED, description="Similarity strategy for grouping")
    stale_report_only_days: int = Field(30, ge=0, description="Report-only age that flags a policy for weeding")
    max_workers: int = Field(1, ge=1, description="Thread pool size for pairwise comparison, 1 disables it")
    parallel_min_policies: int = Field(500, ge=2, description="Policy count that enables parallel comparison")

    @classmethod
    def from_settings(cls, source: Settings | None = None) -> "AnalysisConfig":
        """Build a config from environment-backed settings."""
        source = source or settings
        return cls(
            overlap_threshold=source.OVERLAP_THRESHOLD,
            duplicate_threshold=source.DUPLICATE_THRESHOLD,
            include_disabled=source.INCLUDE_DISABLED,
            weighting_mode=source.WEIGHTING_MODE,
            stale_report_only_days=source.STALE_REPORT_ONLY_DAYS,
            max_workers=source.COMPARISON_MAX_WORKERS,
            parallel_min_policies=source.PARALLEL_COMPARISON_MIN_POLICIES,
        )
