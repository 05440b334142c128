# main.py
# Entry point: routes between two campus places and prints the directions.
# In production the map UI calls NavigationSystem.route_between() directly.
#
# Usage:
#   campus-nav                       (main gate -> library)
#   campus-nav main-gate biotech
#   CAMPUS_NAV_OSRM_ENABLED=1 campus-nav main-gate library

import logging
import sys
from typing import List, Optional

from .geo_utils import format_distance, format_walking_time
from .nav_config import NavConfig
from .navigator import NavigationSystem
from .poi_finder import category_display_name

DEFAULT_ORIGIN = "main-gate"
DEFAULT_DESTINATION = "library"


def main(argv: Optional[List[str]] = None) -> int:
    argv = sys.argv[1:] if argv is None else argv

    # ------------------------------------------------------------------
    # Logging setup: configure once here, all modules inherit
    # ------------------------------------------------------------------
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        datefmt="%H:%M:%S",
    )

    # Config: tweak thresholds or endpoints via environment / .env
    config = NavConfig.from_env()
    origin_id = argv[0] if len(argv) > 0 else DEFAULT_ORIGIN
    destination_id = argv[1] if len(argv) > 1 else DEFAULT_DESTINATION

    with NavigationSystem(config) as nav:
        try:
            origin = nav.locations.get(origin_id)
            destination = nav.locations.get(destination_id)
        except KeyError as e:
            print(f"[Main] Unknown campus location: {e}")
            print(f"[Main] Known ids: {', '.join(loc.id for loc in nav.locations.all())}")
            return 1

        route = nav.route_to_location(origin.point, destination.id)

        print(f"\n{origin.name} → {destination.name} ({category_display_name(destination.category)})")
        print(f"  {format_distance(route.distance)}, about {format_walking_time(route.distance)} on foot\n")
        for i, step in enumerate(route.steps):
            suffix = f" ({format_distance(step.distance)})" if step.distance else ""
            print(f"  {i + 1:>2}. {step.instruction}{suffix}")
        print(f"\n  Polyline: {len(route.coordinates)} points")
    return 0


if __name__ == "__main__":
    sys.exit(main())
