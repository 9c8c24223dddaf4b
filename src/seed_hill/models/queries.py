from typing import Any

from pydantic import BaseModel, ConfigDict, Field, model_validator

from seed_hill.puzzles.codes import ClockMode


class SearchBounds(BaseModel):
    """Advance range and result cap for a forward search.

    Out-of-order ranges are clamped rather than rejected: a negative minimum
    becomes 0 and a maximum below the minimum becomes the minimum.
    """

    model_config = ConfigDict(frozen=True)

    min_advances: int = 0
    max_advances: int = 5_000_000
    max_results: int = Field(default=20, gt=0)

    @model_validator(mode="before")
    @classmethod
    def clamp_range(cls, data: Any) -> Any:
        if not isinstance(data, dict):
            return data
        data = dict(data)
        lo = max(0, int(data.get("min_advances", 0)))
        hi = int(data.get("max_advances", cls.model_fields["max_advances"].default))
        data["min_advances"] = lo
        data["max_advances"] = max(hi, lo)
        return data


class ClockTarget(BaseModel):
    """Target clock face. The hour is left unconstrained so impossible hours reach the core as 'no result'."""

    model_config = ConfigDict(frozen=True)

    hour: int = 0
    minute: int = Field(default=0, ge=0, le=59)
    mode: ClockMode = ClockMode.TWELVE_HOUR

    @classmethod
    def from_flag(cls, hour: int, minute: int, twenty_four_hour: bool) -> "ClockTarget":
        return cls(hour=hour, minute=minute, mode=ClockMode.from_flag(twenty_four_hour))
