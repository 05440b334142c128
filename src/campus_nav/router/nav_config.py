# nav_config.py
# All tuneable constants in one place.
# Pass a NavConfig instance to every module that needs settings.

import os
from dataclasses import dataclass
from typing import Optional

from dotenv import load_dotenv


# ---------------------------------------------------------------------------
# Defaults
# ---------------------------------------------------------------------------

DATA_DIR: str = os.path.join(os.path.dirname(os.path.abspath(__file__)), "data")

WALKING_SPEED_MS: float = 1.4          # average walking speed, m/s
SNAP_SPLICE_THRESHOLD_M: float = 5.0   # off-graph endpoints further than this are spliced in
COORD_PRECISION: int = 7               # decimals used to merge duplicate vertices

STRAIGHT_THRESHOLD_DEG: float = 15.0
SLIGHT_THRESHOLD_DEG: float = 45.0

OSRM_PUBLIC_URL: str = "https://router.project-osrm.org"

_TRUE_VALUES = frozenset({"1", "true", "yes", "on"})
_FALSE_VALUES = frozenset({"0", "false", "no", "off", ""})


# ---------------------------------------------------------------------------
# Main config
# ---------------------------------------------------------------------------

@dataclass
class NavConfig:
    # Routing
    walking_speed_ms: float = WALKING_SPEED_MS
    snap_threshold_m: float = SNAP_SPLICE_THRESHOLD_M
    coord_precision: int = COORD_PRECISION
    straight_threshold_deg: float = STRAIGHT_THRESHOLD_DEG
    slight_threshold_deg: float = SLIGHT_THRESHOLD_DEG

    # Static campus data
    paths_file: str = os.path.join(DATA_DIR, "campus_paths.geojson")
    locations_file: str = os.path.join(DATA_DIR, "campus_locations.csv")
    anchors_file: str = os.path.join(DATA_DIR, "location_anchors.csv")

    # External routing provider (OSRM)
    external_enabled: bool = False
    external_first: bool = False           # consult the provider before the on-device graph
    osrm_base_url: str = OSRM_PUBLIC_URL
    osrm_profile: str = "foot"
    osrm_timeout_s: float = 5.0

    # Diagnostics
    log_dir: str = "."
    diagnostics_filename: str = "routing_diagnostics.jsonl"

    @property
    def diagnostics_filepath(self) -> str:
        return os.path.join(self.log_dir, self.diagnostics_filename)

    @classmethod
    def from_env(cls, env_file: Optional[str] = None, **overrides) -> "NavConfig":
        """
        Build a config from environment variables (and a .env file if present).

        Recognised variables:
            CAMPUS_NAV_OSRM_URL      base URL of the OSRM server
            CAMPUS_NAV_OSRM_ENABLED  1/0, true/false
            CAMPUS_NAV_OSRM_TIMEOUT  seconds
            CAMPUS_NAV_LOG_DIR       diagnostics directory

        Keyword overrides win over the environment.
        """
        load_dotenv(env_file)
        values = {}

        url = os.getenv("CAMPUS_NAV_OSRM_URL")
        if url:
            values["osrm_base_url"] = url.rstrip("/")

        enabled = os.getenv("CAMPUS_NAV_OSRM_ENABLED")
        if enabled is not None:
            values["external_enabled"] = _parse_bool("CAMPUS_NAV_OSRM_ENABLED", enabled)

        timeout = os.getenv("CAMPUS_NAV_OSRM_TIMEOUT")
        if timeout:
            try:
                values["osrm_timeout_s"] = float(timeout)
            except ValueError:
                raise ValueError(f"CAMPUS_NAV_OSRM_TIMEOUT must be a number, got {timeout!r}")

        log_dir = os.getenv("CAMPUS_NAV_LOG_DIR")
        if log_dir:
            values["log_dir"] = log_dir

        values.update(overrides)
        return cls(**values)


def _parse_bool(name: str, raw: str) -> bool:
    value = raw.strip().lower()
    if value in _TRUE_VALUES:
        return True
    if value in _FALSE_VALUES:
        return False
    raise ValueError(f"{name} must be a boolean flag, got {raw!r}")
