"""Typed data models used across the trending-terms pipeline."""

from __future__ import annotations

from pydantic import AliasChoices, BaseModel, ConfigDict, Field, computed_field


class TermEntry(BaseModel):
    """Single occurrence of a term at a logical timestamp."""

    model_config = ConfigDict(frozen=True)

    term: str = Field(..., min_length=1)
    timestamp: int = Field(..., ge=0)


class TermCount(BaseModel):
    """One row of a top-K answer."""

    term: str
    count: int = Field(..., ge=0)


class BufferStats(BaseModel):
    """Cumulative counters of an admission policy."""

    processed: int = Field(0, ge=0)
    dropped: int = Field(0, ge=0)
    buffered: int = Field(0, ge=0)
    forced_flushes: int = Field(0, ge=0)
    watermark: int = Field(0, ge=0)
    max_observed_timestamp: int = Field(0, ge=0)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def drop_rate(self) -> float:
        """Percentage of released-or-dropped entries that were dropped."""
        seen = self.processed + self.dropped
        if seen == 0:
            return 0.0
        return self.dropped / seen * 100.0


class SessionReport(BaseModel):
    """Statistics for a processing session."""

    late_handling: bool
    events_processed: int = Field(..., ge=0)
    events_rejected: int = Field(..., ge=0)
    terms_recorded: int = Field(..., ge=0)
    distinct_terms: int = Field(..., ge=0)
    window_size: int = Field(..., ge=0)
    buffer: BufferStats


class TrendConfig(BaseModel):
    """Runtime configuration switches."""

    model_config = ConfigDict(populate_by_name=True)

    window_size: int = Field(
        600, ge=0, validation_alias=AliasChoices("window_size", "windowSize")
    )
    allowed_lateness: int = Field(
        30, ge=0, validation_alias=AliasChoices("allowed_lateness", "allowedLateness")
    )
    buffer_capacity: int = Field(
        10_000, ge=1, validation_alias=AliasChoices("buffer_capacity", "maxBufferSize")
    )
    late_handling: bool = Field(
        True, validation_alias=AliasChoices("late_handling", "enableLateDataHandling")
    )
    stopwords_path: str | None = Field(
        None, validation_alias=AliasChoices("stopwords_path", "stopWordPath")
    )
    default_top_k: int = Field(10, ge=0)
