"""Centralized configuration for docs-search-engine using Pydantic Settings."""

from typing import Any, Literal

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from docs_search_engine.domain.search import SearchOptions
from docs_search_engine.search.ranking import FieldWeights, RankingEngine


class Settings(BaseSettings):
    """Strictly typed engine configuration loaded from ``DOCS_SEARCH_*`` environment variables.

    Values are validated once at construction; an engine keeps the instance it
    was started with.
    """

    model_config = SettingsConfigDict(
        env_prefix="DOCS_SEARCH_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        validate_default=True,
        extra="ignore",
    )

    engine_name: str = Field(default="docs", min_length=1, description="Engine name used in logs and metric labels")

    # Ranking
    title_weight: float = Field(default=3.0, gt=0, description="Score multiplier for title matches")
    tag_weight: float = Field(default=2.0, gt=0, description="Score multiplier for tag matches")
    content_weight: float = Field(default=1.0, gt=0, description="Score multiplier for body matches")
    recency_max_boost: float = Field(
        default=0.5,
        ge=0.0,
        description="Extra score fraction for content modified just now (0.5 -> up to 1.5x)",
    )
    recency_half_life_days: float = Field(
        default=30.0,
        gt=0.0,
        description="Age in days at which the recency boost has halved",
    )
    fuzzy_max_distance: int | None = Field(
        default=None,
        ge=0,
        description="Fixed edit-distance tolerance for fuzzy queries (default scales with term length)",
    )

    # Results
    default_limit: int = Field(default=20, ge=1, description="Results returned when a query sets no limit")
    max_limit: int = Field(default=100, ge=1, description="Upper bound for an explicit result limit")
    snippet_length: int = Field(default=200, ge=20, description="Target snippet length in characters")
    snippet_context: int = Field(default=60, ge=0, description="Characters kept before the first match")
    snippet_highlight: Literal["none", "plain", "html"] = Field(
        default="none", description="Highlight matched terms as [[term]] (plain) or <mark> (html)"
    )

    # Logging
    log_level: str = Field(default="info", description="Logging level")
    log_json: bool = Field(default=True, description="Emit structured JSON logs")

    @model_validator(mode="after")
    def _check_ordering(self) -> "Settings":
        if not self.title_weight > self.tag_weight > self.content_weight:
            raise ValueError(
                "Field weights must satisfy DOCS_SEARCH_TITLE_WEIGHT > DOCS_SEARCH_TAG_WEIGHT > "
                f"DOCS_SEARCH_CONTENT_WEIGHT, got {self.title_weight}, {self.tag_weight}, {self.content_weight}"
            )
        if self.default_limit > self.max_limit:
            raise ValueError(
                f"DOCS_SEARCH_DEFAULT_LIMIT ({self.default_limit}) must not exceed "
                f"DOCS_SEARCH_MAX_LIMIT ({self.max_limit})"
            )
        return self

    def field_weights(self) -> FieldWeights:
        return FieldWeights(title=self.title_weight, tags=self.tag_weight, content=self.content_weight)

    def ranking_engine(self) -> RankingEngine:
        """Build the ranking engine described by these settings."""
        return RankingEngine(
            self.field_weights(),
            recency_max_boost=self.recency_max_boost,
            recency_half_life_days=self.recency_half_life_days,
        )

    def search_options(self, **overrides: Any) -> SearchOptions:
        """Build query options with configured defaults.

        An explicit ``limit`` is capped at ``max_limit``; ``limit=None`` keeps
        meaning "every match".
        """
        values: dict[str, Any] = {"limit": self.default_limit, **overrides}
        limit = values["limit"]
        if isinstance(limit, int) and limit > self.max_limit:
            values["limit"] = self.max_limit
        return SearchOptions(**values)
