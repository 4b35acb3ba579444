"""Rebuild per-balloon tracks from raw hourly feed payloads."""

from __future__ import annotations

from datetime import datetime, timezone
import logging
import time
from typing import Any, Iterable, Optional, Sequence

from skydrift.config import settings
from skydrift.models.tracks import BalloonPoint, BalloonTrack
from skydrift.utils.geo import bearing, haversine
from skydrift.utils.numbers import coerce_number

logger = logging.getLogger("skydrift.track_builder")

ID_KEYS = ("id", "name", "device_id", "balloon_id")
LAT_KEYS = ("lat", "latitude")
LON_KEYS = ("lon", "longitude")
ALT_KEYS = ("alt", "altitude")
TS_KEYS = ("ts", "timestamp", "time")

HOURS_IN_WINDOW = 24
SECONDS_PER_HOUR = 3600
SECONDS_PER_ROW = 60


def synthetic_id(index: int) -> str:
    return f"balloon_{index}"


def _first_present(row: dict, keys: Iterable[str]) -> Any:
    for key in keys:
        value = row.get(key)
        if value is not None:
            return value
    return None


def _rows(payload: Any) -> list:
    if isinstance(payload, list):
        return payload
    if isinstance(payload, dict):
        data = payload.get("data")
        if isinstance(data, list):
            return data
    return []


def _parse_timestamp(raw: Any) -> float | None:
    """Seconds since the epoch from a numeric or ISO-8601 timestamp."""

    if raw is None or isinstance(raw, bool):
        return None
    if isinstance(raw, (int, float)):
        return coerce_number(raw)
    if isinstance(raw, str):
        text = raw.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            logger.debug("Unparsable timestamp: %r", raw)
            return None
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=timezone.utc)
        return parsed.timestamp()
    return None


def _parse_row(
    row: Any, index: int, hour_ts: int
) -> Optional[tuple[str, BalloonPoint]]:
    if isinstance(row, (list, tuple)) and len(row) >= 2:
        track_id = synthetic_id(index)
        lat = coerce_number(row[0])
        lon = coerce_number(row[1])
        alt = coerce_number(row[2]) if len(row) > 2 else None
        ts: float | None = hour_ts + index * SECONDS_PER_ROW
    elif isinstance(row, dict):
        raw_id = _first_present(row, ID_KEYS)
        track_id = str(raw_id) if raw_id is not None else synthetic_id(index)
        lat = coerce_number(_first_present(row, LAT_KEYS))
        lon = coerce_number(_first_present(row, LON_KEYS))
        alt = coerce_number(_first_present(row, ALT_KEYS))
        ts = _parse_timestamp(_first_present(row, TS_KEYS))
    else:
        return None

    if lat is None or lon is None or ts is None:
        return None
    return track_id, BalloonPoint(ts=ts, lat=lat, lon=lon, alt=alt)


def _clean_points(points: list[BalloonPoint], max_speed: float) -> list[BalloonPoint]:
    """Sort points, derive kinematics and drop implausible jumps.

    Each point is compared with the last retained point, so a rejected
    outlier never becomes the reference for the next one.
    """

    points.sort(key=lambda p: p.ts)
    clean: list[BalloonPoint] = []
    for point in points:
        if clean:
            prev = clean[-1]
            if point.same_fix(prev):
                continue
            distance = haversine(prev.lat, prev.lon, point.lat, point.lon)
            elapsed = max(1.0, point.ts - prev.ts)
            speed = distance / elapsed
            if speed > max_speed:
                logger.debug(
                    "Dropping outlier at ts=%s (%.1f m/s from previous fix)", point.ts, speed
                )
                continue
            point.speed = speed
            point.bearing = bearing(prev.lat, prev.lon, point.lat, point.lon)
        clean.append(point)
    return clean


def build_tracks(
    hourly_payloads: Sequence[Any],
    *,
    now: int | None = None,
    max_speed: float | None = None,
) -> dict[str, BalloonTrack]:
    """Group hourly payloads into cleaned, time-ordered tracks keyed by balloon id.

    Payloads are ordered oldest first: the payload at position ``i`` is taken
    to cover the hour ending ``23 - i`` hours before ``now``. Rows that cannot
    be read are skipped without affecting the rest of the batch.
    """

    if now is None:
        now = int(time.time())
    if max_speed is None:
        max_speed = settings.outlier_speed_mps

    tracks: dict[str, BalloonTrack] = {}
    skipped = 0
    for hour_index, payload in enumerate(hourly_payloads):
        hour_ts = now - (HOURS_IN_WINDOW - 1 - hour_index) * SECONDS_PER_HOUR
        for index, row in enumerate(_rows(payload)):
            parsed = _parse_row(row, index, hour_ts)
            if parsed is None:
                skipped += 1
                continue
            track_id, point = parsed
            track = tracks.get(track_id)
            if track is None:
                track = tracks[track_id] = BalloonTrack(id=track_id)
            if track.points and track.points[-1].same_fix(point):
                continue
            track.points.append(point)

    for track in tracks.values():
        track.points = _clean_points(track.points, max_speed)

    logger.debug(
        "Built %s tracks from %s payloads (%s rows skipped)",
        len(tracks),
        len(hourly_payloads),
        skipped,
    )
    return tracks


__all__ = ["build_tracks", "synthetic_id"]
