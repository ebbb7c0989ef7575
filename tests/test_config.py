from __future__ import annotations

import json

import pytest

from rhine.config import COUNTRY_CATALOG, REGION_CONFIG, all_region_countries, load_region_config, region_of


def test_every_region_country_is_in_catalog():
    assert set(all_region_countries(REGION_CONFIG)) <= set(COUNTRY_CATALOG.values())


def test_region_of_is_case_insensitive():
    assert region_of("north macedonia", REGION_CONFIG) == "western_balkans"
    assert region_of(" Georgia ", REGION_CONFIG) == "south_caucasus"
    assert region_of("France", REGION_CONFIG) is None


def test_region_membership():
    assert "Armenia" in REGION_CONFIG["south_caucasus"]
    assert "Turkey" not in REGION_CONFIG["south_caucasus"]


def test_load_region_config(tmp_path):
    p = tmp_path / "regions.json"
    p.write_text(json.dumps({
        "nordics": {"name": "Nordic Countries", "shortName": "Nordics", "countries": ["Norway", "Iceland"]},
        "baltics": {"countries": ["Estonia"]},
    }), encoding="utf-8")
    regions = load_region_config(str(p))
    assert list(regions) == ["nordics", "baltics"]
    assert regions["nordics"].short_name == "Nordics"
    assert regions["nordics"].countries == ("Norway", "Iceland")
    assert regions["baltics"].name == "baltics"
    assert regions["baltics"].short_name == "baltics"


@pytest.mark.parametrize("payload", [
    [],
    {"x": "Norway"},
    {"x": {"countries": "Norway"}},
    {"x": {"countries": [1, 2]}},
])
def test_load_region_config_rejects_bad_shapes(tmp_path, payload):
    p = tmp_path / "regions.json"
    p.write_text(json.dumps(payload), encoding="utf-8")
    with pytest.raises(ValueError):
        load_region_config(str(p))
