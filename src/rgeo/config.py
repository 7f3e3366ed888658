"""Minimal configuration loader for the reverse geocoder."""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import Tuple

from dotenv import load_dotenv

load_dotenv()

EARTH_RADIUS_KM = 6371.0
DEFAULT_SNAP_DISTANCE_KM = 5.0


def _as_bool(value: str, *, default: bool = False) -> bool:
    truthy = {"1", "true", "yes", "on"}
    falsy = {"0", "false", "no", "off"}
    text = value.strip().lower()
    if text in truthy:
        return True
    if text in falsy:
        return False
    return default


def _as_paths(value: str) -> Tuple[Path, ...]:
    return tuple(Path(part).expanduser() for part in value.split(os.pathsep) if part.strip())


@dataclass(frozen=True)
class Settings:
    datasets: Tuple[Path, ...] = ()
    snap_distance_km: float = DEFAULT_SNAP_DISTANCE_KM
    earth_radius_km: float = EARTH_RADIUS_KM
    eager_build: bool = True
    log_level: str = "INFO"

    @classmethod
    def load(cls) -> "Settings":
        snap_distance = float(os.getenv("RGEO_SNAP_DISTANCE_KM", str(DEFAULT_SNAP_DISTANCE_KM)))
        if snap_distance < 0:
            raise RuntimeError("RGEO_SNAP_DISTANCE_KM must not be negative")

        return cls(
            datasets=_as_paths(os.getenv("RGEO_DATASETS", "")),
            snap_distance_km=snap_distance,
            earth_radius_km=float(os.getenv("RGEO_EARTH_RADIUS_KM", str(EARTH_RADIUS_KM))),
            eager_build=_as_bool(os.getenv("RGEO_EAGER_BUILD", "true"), default=True),
            log_level=os.getenv("RGEO_LOG_LEVEL", "INFO"),
        )


__all__ = ["DEFAULT_SNAP_DISTANCE_KM", "EARTH_RADIUS_KM", "Settings"]
