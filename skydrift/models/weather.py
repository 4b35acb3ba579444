"""Wind observation model used for track enrichment."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, Field


class WindObservation(BaseModel):
    """Surface wind and temperature near a point in space and time.

    Every field may be missing; an observation without wind speed and
    direction means no data was available for the requested location.
    """

    wind_speed: Optional[float] = Field(
        default=None, description="Wind speed at 10 m in meters per second",
    )
    wind_dir: Optional[float] = Field(
        default=None, description="Wind direction at 10 m in degrees",
    )
    temp: Optional[float] = Field(
        default=None, description="Air temperature at 2 m in Celsius",
    )

    @property
    def available(self) -> bool:
        return self.wind_speed is not None and self.wind_dir is not None


__all__ = ["WindObservation"]
