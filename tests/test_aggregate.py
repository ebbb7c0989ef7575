from __future__ import annotations

import pytest

from rhine.aggregate import (
    country_comparison,
    chronology,
    latest_disasters,
    regional_distribution,
    round1,
    seasonal_radar,
    summary_statistics,
    yearly_counts,
)
from rhine.assembler import TextSource, assemble
from rhine.config import REGION_CONFIG
from rhine.models import SEASONS, Country, Filter, NotFound
from rhine.taxonomy import HAZARD_TYPES

from .conftest import HEADER, make_record


def test_round1_is_half_up():
    assert round1(0.25) == 0.3
    assert round1(2.25) == 2.3
    assert round1(66.66666666666667) == 66.7
    assert round1(100) == 100.0


# -----------------------------
# Regional distribution
# -----------------------------

def test_regional_distribution_totals(records):
    res = regional_distribution(records, ["western_balkans", "south_caucasus"])
    wb, sc = res.rows
    assert wb["region"] == "W. Balkans & Türkiye"
    assert wb["Flood"] == 2 and wb["Earthquake"] == 1 and wb["Storm"] == 1 and wb["Fire"] == 1
    assert wb["total"] == 5
    assert sc["Mass Movement"] == 1 and sc["total"] == 1
    assert res.disaster_types == ["Earthquake", "Fire", "Flood", "Mass Movement", "Storm"]


def test_regional_total_matches_filtered_record_count(records):
    flt = Filter(start_date="2023-01-01")
    res = regional_distribution(records, ["western_balkans"], flt)
    row = res.rows[0]
    assert row["total"] == sum(row[t] for t in res.disaster_types if t in row)
    members = set(REGION_CONFIG["western_balkans"].countries)
    expected = [r for r in records if r.country_name in members and r.start_year >= 2023]
    assert row["total"] == len(expected) == 3


def test_regional_counts_distinct_ids():
    recs = [make_record("A-1"), make_record("A-1"), make_record("A-2")]
    res = regional_distribution(recs, ["western_balkans"])
    assert res.rows[0]["Flood"] == 2
    assert res.rows[0]["total"] == 2


def test_regional_unknown_region_is_not_found(records):
    res = regional_distribution(records, ["western_balkans", "atlantis"])
    assert isinstance(res, NotFound)
    assert res.kind == "region" and res.key == "atlantis"


def test_regional_distribution_is_deterministic(records):
    a = regional_distribution(records, ["western_balkans"]).to_dict()
    b = regional_distribution(list(records), ["western_balkans"]).to_dict()
    assert a == b


# -----------------------------
# Country comparison
# -----------------------------

@pytest.fixture
def caucasus():
    return [
        make_record("G-1", "Flood", "Georgia"),
        make_record("G-2", "Flood", "Georgia"),
        make_record("G-3", "Flood", "Georgia"),
        make_record("G-3", "Flood", "Georgia"),
        make_record("A-1", "Flood", "Armenia"),
        make_record("A-2", "Earthquake", "Armenia"),
        make_record("T-1", "Storm", "Turkey"),
    ]


def test_country_comparison(caucasus):
    res = country_comparison(caucasus, "georgia")
    assert res.country.name == "Georgia"
    assert res.country.disasters == {"Flood": 3}
    assert res.country.total == 3
    avg = res.regional_average
    assert avg.name == "South Caucasus Avg"
    assert avg.disasters == {"Earthquake": 0.5, "Flood": 2.0}
    assert avg.total == 2.5
    assert avg.countries_in_region == 2
    assert avg.countries_with_data == 2
    assert res.disaster_types == ["Earthquake", "Flood"]


def test_comparison_divides_by_configured_countries():
    recs = [make_record("K-1", "Drought", "Kazakhstan")]
    res = country_comparison(recs, "Kazakhstan")
    assert res.regional_average.disasters == {"Drought": 0.2}
    assert res.regional_average.countries_in_region == 5
    assert res.regional_average.countries_with_data == 1


def test_comparison_unknown_country_is_not_found(caucasus):
    res = country_comparison(caucasus, "France")
    assert isinstance(res, NotFound)
    assert res.kind == "country"
    assert "France" in res.message


def test_comparison_ignores_filter_country_and_region(caucasus):
    flt = Filter(region="central_asia", country="Armenia")
    assert country_comparison(caucasus, "Georgia", flt).to_dict() == country_comparison(caucasus, "Georgia").to_dict()


# -----------------------------
# Seasonal radar
# -----------------------------

@pytest.fixture
def seasonal():
    return [
        make_record("G-1", "Flood", "Georgia", event_season="Spring"),
        make_record("G-2", "Flood", "Georgia", event_season="Spring"),
        make_record("G-3", "Flood", "Georgia", event_season="Summer"),
        make_record("G-3", "Flood", "Georgia", event_season="Summer"),
        make_record("G-4", "Storm", "Georgia", event_season=None),
        make_record("A-1", "Drought", "Armenia", event_season="Summer"),
        make_record("A-2", "Drought", "Armenia", event_season="Autumn"),
        make_record("A-3", "Drought", "Armenia", event_season="Winter"),
        make_record("T-1", "Storm", "Turkey", event_season="Winter"),
    ]


def test_seasonal_radar_percentages(seasonal):
    res = seasonal_radar(seasonal, "south_caucasus")
    assert res.countries == ["Armenia", "Georgia"]
    assert res.seasons == list(SEASONS)
    georgia = res.country_radars[1]
    assert georgia.disaster_types == ["Flood"]
    assert [p["axis"] for p in georgia.data] == list(SEASONS)
    assert [p["Flood"] for p in georgia.data] == [66.7, 33.3, 0.0, 0.0]
    assert georgia.total_events == 3


def test_seasonal_percentages_sum_to_100(seasonal):
    res = seasonal_radar(seasonal, "south_caucasus")
    for radar in res.country_radars:
        for t in radar.disaster_types:
            assert sum(p[t] for p in radar.data) == pytest.approx(100, abs=0.1 + 1e-9)


def test_radar_omits_pairs_without_events(seasonal):
    res = seasonal_radar(seasonal, "south_caucasus")
    georgia = res.country_radars[1]
    assert "Storm" not in georgia.disaster_types
    assert all("Storm" not in p for p in georgia.data)


def test_radar_unknown_region(seasonal):
    assert isinstance(seasonal_radar(seasonal, "atlantis"), NotFound)


def test_radar_applies_type_filter(seasonal):
    res = seasonal_radar(seasonal, "south_caucasus", Filter(disaster_types=("drought",)))
    assert res.countries == ["Armenia"]
    assert [p["Drought"] for p in res.country_radars[0].data] == [0.0, 33.3, 33.3, 33.3]


# -----------------------------
# Summary statistics
# -----------------------------

def _country(name, recs, status="ok"):
    return Country(id=name[:3].lower(), name=name, iso=name[:3].upper(), disasters=tuple(recs), status=status)


def test_summary_statistics_totals(countries):
    s = summary_statistics(countries)
    assert s.total_disasters == 6
    assert s.total_deaths == 2 + 0 + 1 + 3
    assert s.total_affected == 150 + 40 + 10 + 20
    assert s.gdp_loss == 1250000 + 5000 + 1000
    assert s.key_hazards[0].name == "Flood" and s.key_hazards[0].count == 2
    assert s.most_common_disaster.name == "Flood"
    assert s.most_affected_country.name == "Albania"
    assert s.most_affected_country.count == 3
    assert s.failed_countries == []


def test_summary_ties_keep_first_encountered_order():
    cs = [
        _country("Albania", [make_record("1", "Storm"), make_record("2", "Flood"), make_record("3", "Fire"),
                             make_record("4", "Drought"), make_record("5", "Flood"), make_record("6", "Storm")]),
        _country("Serbia", [make_record("7", "Fire", "Serbia"), make_record("8", "Drought", "Serbia"),
                            make_record("9", "Tsunami", "Serbia"), make_record("10", "Epidemic", "Serbia"),
                            make_record("11", "Other", "Serbia"), make_record("12", "Storm", "Serbia")]),
    ]
    s = summary_statistics(cs)
    assert [(h.name, h.count) for h in s.key_hazards] == [("Storm", 3), ("Flood", 2), ("Fire", 2)]
    # both countries have 6 records: first in list wins
    assert s.most_affected_country.name == "Albania"


def test_summary_counts_duplicates_once():
    cs = [_country("Albania", [make_record("1", total_deaths=5), make_record("1", total_deaths=5)])]
    s = summary_statistics(cs)
    assert s.total_disasters == 1
    assert s.total_deaths == 5


def test_summary_flags_failed_sources():
    cs = [_country("Albania", [make_record("1")]), _country("Serbia", [], status="failed")]
    s = summary_statistics(cs)
    assert s.total_disasters == 1
    assert s.failed_countries == ["Serbia"]


def test_summary_respects_region_and_dates(countries):
    s = summary_statistics(countries, Filter(region="south_caucasus"))
    assert s.total_disasters == 1
    assert s.most_affected_country.name == "Georgia"
    s = summary_statistics(countries, Filter(end_date="2022-12-31"))
    assert s.total_disasters == 3


def test_summary_of_nothing():
    s = summary_statistics([])
    assert s.total_disasters == 0
    assert s.key_hazards == []
    assert s.most_affected_country is None
    assert s.most_common_disaster is None


# -----------------------------
# Time views
# -----------------------------

def test_chronology_is_ascending(records):
    res = chronology(records, "western_balkans")
    keys = [r.start_date_key() for r in res]
    assert keys == sorted(keys)
    assert res[0].dis_no == "MET-20220301-WBTC-SRB-0001"
    assert isinstance(chronology(records, "atlantis"), NotFound)


def test_latest_disasters(records):
    res = latest_disasters(records, limit=2)
    assert [r.dis_no for r in res] == ["HYDRO-20230720-WBTC-ALB-0003", "GEO-20230610-WBTC-ALB-0002"]


def test_yearly_counts(records):
    res = yearly_counts(records, 2020, 2023)
    assert [row["year"] for row in res.rows] == [2020, 2021, 2022, 2023]
    assert res.disaster_types == list(HAZARD_TYPES)
    by_year = {row["year"]: row for row in res.rows}
    assert by_year[2020]["total"] == 0
    assert by_year[2021]["Mass Movement"] == 1
    assert by_year[2022]["Storm"] == 1 and by_year[2022]["Fire"] == 1
    assert by_year[2023]["Flood"] == 2 and by_year[2023]["total"] == 3
    assert yearly_counts(records, 2024, 2020).rows == []


# -----------------------------
# Country identity and unknown regions
# -----------------------------

def test_region_views_follow_the_loading_source():
    text = "\n".join([
        HEADER,
        "HYDRO-20230115-WBTC-TUR-0001,Hydrological Hazards,Flood,Flood,,TUR,"
        "2023,1,15,Winter,Western Balkans,Türkiye,1,10,,",
        "MET-20230301-WBTC-TUR-0002,Meteorological Hazards,Storm,Storm,,TUR,"
        "2023,3,1,Spring,Western Balkans,Türkiye,0,5,,",
    ])
    asm = assemble([TextSource(name="Turkey", iso="TUR", text=text)])
    recs = asm.records()

    assert summary_statistics(asm.countries).total_disasters == 2
    assert regional_distribution(recs, ["western_balkans"]).rows[0]["total"] == 2
    assert country_comparison(recs, "Turkey").country.total == 2
    assert seasonal_radar(recs, "western_balkans").countries == ["Turkey"]


@pytest.mark.parametrize("run", [
    lambda recs, cs, flt: summary_statistics(cs, flt),
    lambda recs, cs, flt: latest_disasters(recs, flt),
    lambda recs, cs, flt: yearly_counts(recs, 2020, 2023, flt),
], ids=["summary", "latest", "yearly"])
def test_unknown_filter_region_is_not_found(records, countries, run):
    res = run(records, countries, Filter(region="atlantis"))
    assert isinstance(res, NotFound)
    assert res.kind == "region" and res.key == "atlantis"
