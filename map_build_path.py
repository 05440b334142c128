# -*- coding: utf-8 -*-
# map_build_path.py
# Exports the walkable campus paths from an OSM extract into the GeoJSON
# the router loads (src/campus_nav/router/data/campus_paths.geojson).
# Needs: pip install -e .
import logging
import sys

from campus_nav.router.map_export import export_walkable_paths

# ===== PARAMS =====
OSM_PATH = "campus.osm"
OUT_WALK_GEOJSON = "src/campus_nav/router/data/campus_paths.geojson"
OUT_WALK_CSV = "highways_walkable.csv"
# ===================

if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(asctime)s [%(levelname)s] %(name)s: %(message)s")
    osm_path = sys.argv[1] if len(sys.argv) > 1 else OSM_PATH
    count = export_walkable_paths(osm_path, OUT_WALK_GEOJSON, OUT_WALK_CSV)
    print(f"Written: {OUT_WALK_GEOJSON}, {OUT_WALK_CSV} (rows: {count})")
