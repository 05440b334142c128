import pytest

from campus_nav.router.models import CampusLocation, RoutePoint, UnknownLocationError
from campus_nav.router.nav_config import NavConfig
from campus_nav.router.poi_finder import LocationDirectory, category_display_name


@pytest.fixture(scope="module")
def campus():
    config = NavConfig()
    return LocationDirectory.from_csv(config.locations_file, config.anchors_file)


def test_bundled_locations_load(campus):
    assert len(campus) == 27
    lib = campus.get("library")
    assert lib == CampusLocation(
        "library", "Library", 21.101417, 79.007840, "academic", "Central library with vast collection"
    )


def test_quoted_descriptions_survive(campus):
    assert campus.get("it-cs-ct").description == "Information Technology, Computer Science and CT Building"


def test_unknown_location(campus):
    with pytest.raises(UnknownLocationError):
        campus.get("nowhere")
    with pytest.raises(KeyError):
        campus.anchor_for("nowhere")


def test_anchor_for_mapped_and_unmapped(campus):
    assert campus.anchor_for("main-canteen") == RoutePoint(21.102479, 79.007738)
    # no road anchor for the architecture block: its own position is used
    arch = campus.get("architecture")
    assert campus.anchor_for("architecture") == arch.point


def test_find_nearest_and_exclude(campus):
    gate = campus.get("main-gate")
    assert campus.find_nearest(gate.lat, gate.lng).id == "main-gate"
    assert campus.find_nearest(gate.lat, gate.lng, exclude_id="main-gate").id != "main-gate"


def test_find_nearest_empty_directory():
    assert LocationDirectory([]).find_nearest(0, 0) is None


def test_find_all_by_category(campus):
    temples = campus.find_all("Religious")
    assert {t.id for t in temples} == {"saraswati-temple", "mahadev-temple"}


@pytest.mark.parametrize("query, expected_id", [
    ("canteen", "first-year-canteen"),
    ("LAKE", "pce-lake"),
    ("robotics", "aids-iot-robotics"),
    ("admin", "admin-section"),
])
def test_search(campus, query, expected_id):
    assert expected_id in {loc.id for loc in campus.search(query)}


def test_empty_search_returns_everything(campus):
    assert len(campus.search("   ")) == len(campus)


def test_list_categories(campus):
    assert campus.list_categories() == ["academic", "admin", "facility", "food", "recreation", "religious"]


def test_category_display_name():
    assert category_display_name("food") == "Food & Dining"
    assert category_display_name("parking") == "Parking"


def test_missing_columns_are_reported(tmp_path):
    path = tmp_path / "locations.csv"
    path.write_text("id,name,lat\nx,X,1.0\n", encoding="utf-8")
    with pytest.raises(ValueError, match="lng"):
        LocationDirectory.from_csv(str(path))


def test_description_column_is_optional(tmp_path):
    path = tmp_path / "locations.csv"
    path.write_text("id,name,lat,lng,category\ngate,Gate,1.0,2.0,facility\n", encoding="utf-8")
    places = LocationDirectory.from_csv(str(path))
    assert places.get("gate").description == ""
    assert places.anchor_for("gate") == RoutePoint(1.0, 2.0)
