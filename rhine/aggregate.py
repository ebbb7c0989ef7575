"""
Aggregation engine
==================

Read-only aggregations over normalized records. Every function here is a pure
function of its arguments (records or countries, a Filter, the region config
and, for the comparison, a focal country). Nothing is cached or mutated.

All counts are *distinct record identifiers* per bucket (see indices.py).

Modes:
- regional_distribution: hazard-type counts per selected region
- country_comparison:    one country vs. the average country of its region
- seasonal_radar:        per country and hazard type, % of events per season
- summary_statistics:    totals, top hazards, most affected country
- chronology / latest_disasters / yearly_counts: time views of a selection

Unknown regions/countries come back as a `NotFound` value, never an exception.
"""

from __future__ import annotations
from dataclasses import asdict, dataclass, field
from decimal import ROUND_HALF_UP, Decimal
from typing import Any, Dict, Iterable, List, Optional, Sequence, Union
from .config import REGION_CONFIG, Regions, region_of
from .dsa import merge_sort, top_k
from .filters import apply_filter, by_region, filter_countries
from .indices import bucket_ids, count_by, distinct
from .models import SEASONS, Country, DisasterRecord, Filter, NotFound
from .taxonomy import HAZARD_TYPES


def round1(x: float) -> float:
    """Round half-up to one decimal (2.25 -> 2.3, unlike built-in round)."""
    return float(Decimal(repr(x)).quantize(Decimal("0.1"), rounding=ROUND_HALF_UP))


def _without(flt: Optional[Filter], *names: str) -> Optional[Filter]:
    if flt is None:
        return None
    return flt.replace(**{n: None for n in names})


def _unknown_region(key: str) -> NotFound:
    return NotFound(kind="region", key=key, message=f'Region "{key}" is not configured')


def _filter_region_missing(flt: Optional[Filter], regions: Regions) -> Optional[NotFound]:
    if flt is not None and flt.region and flt.region not in regions:
        return _unknown_region(flt.region)
    return None


# -----------------------------
# Result types
# -----------------------------

@dataclass
class RegionalDistribution:
    """One row per region: {region, region_key, full_name, <type>: count, ..., total}."""
    rows: List[Dict[str, Any]]
    disaster_types: List[str]

    def to_dict(self) -> Dict[str, Any]:
        return {"rows": [dict(r) for r in self.rows], "disaster_types": list(self.disaster_types)}


@dataclass
class CountryTotals:
    name: str
    disasters: Dict[str, int]
    total: int


@dataclass
class RegionalAverage:
    name: str
    region_key: str
    region_name: str
    region_short_name: str
    disasters: Dict[str, float]
    total: float
    countries_in_region: int
    countries_with_data: int


@dataclass
class CountryComparison:
    country: CountryTotals
    regional_average: RegionalAverage
    disaster_types: List[str]

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class CountryRadar:
    """Radar series for one country: one point per season, one value per type."""
    country: str
    data: List[Dict[str, Any]]
    disaster_types: List[str]
    total_events: int


@dataclass
class SeasonalRadar:
    country_radars: List[CountryRadar]
    countries: List[str]
    seasons: List[str] = field(default_factory=lambda: list(SEASONS))

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class NamedCount:
    name: str
    count: int


@dataclass
class SummaryStatistics:
    total_deaths: float = 0
    total_affected: float = 0
    gdp_loss: float = 0
    total_disasters: int = 0
    hazard_breakdown: Dict[str, int] = field(default_factory=dict)
    key_hazards: List[NamedCount] = field(default_factory=list)
    most_affected_country: Optional[NamedCount] = None
    most_common_disaster: Optional[NamedCount] = None
    failed_countries: List[str] = field(default_factory=list)

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


@dataclass
class YearlyCounts:
    """One row per year: {year, <type>: count, ..., total}."""
    rows: List[Dict[str, Any]]
    disaster_types: List[str]

    def to_dict(self) -> Dict[str, Any]:
        return {"rows": [dict(r) for r in self.rows], "disaster_types": list(self.disaster_types)}


# -----------------------------
# Aggregations
# -----------------------------

def regional_distribution(
    records: Iterable[DisasterRecord],
    region_keys: Sequence[str],
    flt: Optional[Filter] = None,
    regions: Regions = REGION_CONFIG,
) -> Union[RegionalDistribution, NotFound]:
    """Hazard-type counts per selected region.

    The selected `region_keys` are the region dimension, so `flt.region` is
    ignored; every other filter field applies.
    """
    for key in region_keys:
        if key not in regions:
            return _unknown_region(key)

    filtered = apply_filter(records, _without(flt, "region"), regions)
    type_set = set()
    rows: List[Dict[str, Any]] = []
    for key in region_keys:
        cfg = regions[key]
        counts = count_by(by_region(filtered, key, regions), lambda r: r.hazard_type)
        type_set.update(counts)
        row: Dict[str, Any] = {"region": cfg.short_name, "region_key": key, "full_name": cfg.name}
        for t in sorted(counts):
            row[t] = counts[t]
        row["total"] = sum(counts.values())
        rows.append(row)
    return RegionalDistribution(rows=rows, disaster_types=sorted(type_set))


def country_comparison(
    records: Iterable[DisasterRecord],
    country: str,
    flt: Optional[Filter] = None,
    regions: Regions = REGION_CONFIG,
) -> Union[CountryComparison, NotFound]:
    """Compare a country's hazard counts with its region's per-country average.

    The average divides by every country configured in the region, not just
    those with data. Region/country fields of `flt` are ignored.
    """
    region_key = region_of(country, regions)
    if region_key is None:
        return NotFound(kind="country", key=country,
                        message=f'Country "{country}" not found in any region')
    cfg = regions[region_key]
    target = country.strip().lower()
    name = next(c for c in cfg.countries if c.lower() == target)

    scoped = by_region(apply_filter(records, _without(flt, "region", "country"), regions), region_key, regions)
    region_counts = count_by(scoped, lambda r: r.hazard_type)
    own_counts = count_by([r for r in scoped if (r.country_name or "").lower() == target],
                          lambda r: r.hazard_type)
    with_data = {(r.country_name or "").lower() for r in scoped}

    n = len(cfg.countries)
    averages = {t: round1(region_counts[t] / n) for t in sorted(region_counts)}
    return CountryComparison(
        country=CountryTotals(
            name=name,
            disasters={t: own_counts[t] for t in sorted(own_counts)},
            total=sum(own_counts.values()),
        ),
        regional_average=RegionalAverage(
            name=f"{cfg.short_name} Avg",
            region_key=region_key,
            region_name=cfg.name,
            region_short_name=cfg.short_name,
            disasters=averages,
            total=round1(sum(averages.values())),
            countries_in_region=n,
            countries_with_data=sum(1 for c in cfg.countries if c.lower() in with_data),
        ),
        disaster_types=sorted(region_counts),
    )


def seasonal_radar(
    records: Iterable[DisasterRecord],
    region_key: str,
    flt: Optional[Filter] = None,
    regions: Regions = REGION_CONFIG,
) -> Union[SeasonalRadar, NotFound]:
    """Per country and hazard type, the share (%) of events in each season.

    Records without a season are left out. All four seasons are always
    emitted as axes; (country, type) pairs without events are not emitted.
    """
    if region_key not in regions:
        return _unknown_region(region_key)

    scoped = apply_filter(records, (flt or Filter()).replace(region=region_key), regions)
    seasonal = [r for r in scoped if r.event_season]
    pair_ids = bucket_ids(seasonal, lambda r: (r.country_name, r.hazard_type))
    season_ids = bucket_ids(seasonal, lambda r: (r.country_name, r.hazard_type, r.event_season))

    countries = sorted({c for c, _ in pair_ids})
    radars: List[CountryRadar] = []
    for c in countries:
        types = sorted(t for cc, t in pair_ids if cc == c)
        data: List[Dict[str, Any]] = []
        for s in SEASONS:
            point: Dict[str, Any] = {"axis": s}
            for t in types:
                total = len(pair_ids[(c, t)])
                hits = len(season_ids.get((c, t, s), ()))
                point[t] = round1(hits / total * 100)
            data.append(point)
        radars.append(CountryRadar(
            country=c,
            data=data,
            disaster_types=types,
            total_events=sum(len(pair_ids[(c, t)]) for t in types),
        ))
    return SeasonalRadar(country_radars=radars, countries=countries)


def summary_statistics(
    countries: Iterable[Country],
    flt: Optional[Filter] = None,
    regions: Regions = REGION_CONFIG,
) -> Union[SummaryStatistics, NotFound]:
    """Scalar rollup over the filtered selection.

    `most_affected_country` ranks the selected countries by their raw record
    count; ties go to the first country in list order.
    """
    missing = _filter_region_missing(flt, regions)
    if missing:
        return missing
    selected = filter_countries(countries, flt, regions)
    pooled = [r for c in selected for r in c.disasters]
    recs = distinct(apply_filter(pooled, _without(flt, "region", "country"), regions))

    breakdown = count_by(recs, lambda r: r.hazard_type)
    ranked = top_k(list(breakdown.items()), 3, key=lambda kv: kv[1])
    key_hazards = [NamedCount(name=t, count=n) for t, n in ranked]

    most_affected = None
    top_country = top_k(selected, 1, key=lambda c: len(c.disasters))
    if top_country:
        most_affected = NamedCount(name=top_country[0].name, count=len(top_country[0].disasters))

    return SummaryStatistics(
        total_deaths=sum(r.total_deaths or 0 for r in recs),
        total_affected=sum(r.no_affected or 0 for r in recs),
        gdp_loss=sum(r.total_economic_loss or 0 for r in recs),
        total_disasters=len(recs),
        hazard_breakdown=dict(breakdown),
        key_hazards=key_hazards,
        most_affected_country=most_affected,
        most_common_disaster=key_hazards[0] if key_hazards else None,
        failed_countries=[c.name for c in selected if c.failed],
    )


def chronology(
    records: Iterable[DisasterRecord],
    region_key: str,
    flt: Optional[Filter] = None,
    regions: Regions = REGION_CONFIG,
) -> Union[List[DisasterRecord], NotFound]:
    """Distinct region records in ascending start-date order (undated first)."""
    if region_key not in regions:
        return _unknown_region(region_key)
    scoped = distinct(apply_filter(records, (flt or Filter()).replace(region=region_key), regions))
    return merge_sort(scoped, key=lambda r: r.start_date_key())


def latest_disasters(
    records: Iterable[DisasterRecord],
    flt: Optional[Filter] = None,
    regions: Regions = REGION_CONFIG,
    limit: int = 3,
) -> Union[List[DisasterRecord], NotFound]:
    """The `limit` most recent dated records of the selection."""
    missing = _filter_region_missing(flt, regions)
    if missing:
        return missing
    dated = [r for r in distinct(apply_filter(records, flt, regions)) if r.start_year is not None]
    return top_k(dated, limit, key=lambda r: r.start_date_key())


def yearly_counts(
    records: Iterable[DisasterRecord],
    start_year: int,
    end_year: int,
    flt: Optional[Filter] = None,
    regions: Regions = REGION_CONFIG,
) -> Union[YearlyCounts, NotFound]:
    """Hazard-type counts for every year of [start_year, end_year] (zeros included)."""
    missing = _filter_region_missing(flt, regions)
    if missing:
        return missing
    types = list(HAZARD_TYPES)
    if end_year < start_year:
        return YearlyCounts(rows=[], disaster_types=types)

    scoped = [r for r in apply_filter(records, flt, regions)
              if r.start_year is not None and start_year <= r.start_year <= end_year]
    ids = bucket_ids(scoped, lambda r: (int(r.start_year), r.hazard_type))

    rows: List[Dict[str, Any]] = []
    for y in range(start_year, end_year + 1):
        row: Dict[str, Any] = {"year": y}
        for t in types:
            row[t] = len(ids.get((y, t), ()))
        row["total"] = sum(row[t] for t in types)
        rows.append(row)
    return YearlyCounts(rows=rows, disaster_types=types)
