"""Balloon track models produced by the track builder."""

from __future__ import annotations

from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class BalloonPoint(BaseModel):
    """One observed position of a balloon, plus derived and enriched fields."""

    ts: float = Field(..., description="Observation time in seconds since the epoch")
    lat: float = Field(..., description="Latitude in decimal degrees")
    lon: float = Field(..., description="Longitude in decimal degrees")
    alt: Optional[float] = Field(default=None, description="Altitude in meters")
    speed: Optional[float] = Field(
        default=None, description="Ground speed from the previous point in m/s",
    )
    bearing: Optional[float] = Field(
        default=None, description="Heading from the previous point in degrees",
    )
    wind_speed: Optional[float] = Field(default=None, description="Wind speed in m/s")
    wind_dir: Optional[float] = Field(
        default=None, description="Wind direction in degrees",
    )
    temp: Optional[float] = Field(default=None, description="Temperature in Celsius")
    consistency: Optional[float] = Field(
        default=None, description="Cosine of the bearing/wind angle, -1 to 1",
    )

    model_config = ConfigDict(extra="ignore")

    @property
    def has_wind(self) -> bool:
        return self.wind_dir is not None and self.wind_speed is not None

    def same_fix(self, other: "BalloonPoint") -> bool:
        """Whether both points share timestamp and position."""

        return self.ts == other.ts and self.lat == other.lat and self.lon == other.lon


class BalloonTrack(BaseModel):
    """Time-ordered position history of a single balloon."""

    id: str = Field(..., description="Stable balloon identifier")
    points: list[BalloonPoint] = Field(default_factory=list)

    @property
    def has_wind(self) -> bool:
        return any(point.has_wind for point in self.points)

    @property
    def score(self) -> Optional[float]:
        """Average drift consistency over the points that have one."""

        values = [p.consistency for p in self.points if p.consistency is not None]
        if not values:
            return None
        return sum(values) / len(values)

    @property
    def last(self) -> Optional[BalloonPoint]:
        return self.points[-1] if self.points else None


class LeaderboardItem(BaseModel):
    """Ranking entry for drift consistency."""

    id: str
    avg: float
    last: Optional[BalloonPoint] = None


class ChartPoint(BaseModel):
    """Per-point values plotted in the track detail charts."""

    ts: float
    speed_kmh: Optional[float] = None
    wind: Optional[float] = None
    temp: Optional[float] = None
    consistency: Optional[float] = None


__all__ = ["BalloonPoint", "BalloonTrack", "ChartPoint", "LeaderboardItem"]
