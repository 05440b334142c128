# map_build.py
# Extracts named campus places (departments, canteens, temples, grounds ...)
# from an OSM extract into the locations CSV the router loads.
# Road anchors (location_anchors.csv) are maintained by hand.
# Needs: pip install -e .
import logging
import sys

from campus_nav.router.map_export import export_campus_locations

OSM_PATH = "campus.osm"
CENTER   = (21.101500, 79.010000)   # (lat, lng)
RADIUS_M = 1200
OUT_CSV  = "campus_locations.csv"

# ---- main ----
if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(asctime)s [%(levelname)s] %(name)s: %(message)s")
    osm_path = sys.argv[1] if len(sys.argv) > 1 else OSM_PATH
    count = export_campus_locations(osm_path, CENTER, RADIUS_M, OUT_CSV)
    print(f"{OUT_CSV}: {count} places written")
