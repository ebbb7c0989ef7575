"""
Data model (DisasterRecord, Country, RegionConfig, Filter)
=========================================================

Each row of a country table is converted into a `DisasterRecord` object.
Records and filters are immutable (`frozen=True`) so that:
- records cannot be modified after normalization, and
- filters/aggregations always build new collections instead of editing data.

Countries group the records of one source table. Region configs are static
groupings of country names used by the regional aggregations.
"""

from __future__ import annotations
import calendar
from dataclasses import dataclass, field, replace
from datetime import MAXYEAR, MINYEAR, date
from typing import Any, Dict, Mapping, Optional, Tuple, Union

Number = Union[int, float]

SEASONS: Tuple[str, ...] = ("Spring", "Summer", "Autumn", "Winter")


def make_date(year: int, month: Optional[int] = None, day: Optional[int] = None) -> date:
    """Build a comparable date, defaulting missing month/day to 1.

    Out-of-range parts are clamped (month into 1..12, day into the month).
    """
    year = min(max(int(year), MINYEAR), MAXYEAR)
    m = min(max(int(month or 1), 1), 12)
    last = calendar.monthrange(year, m)[1]
    d = min(max(int(day or 1), 1), last)
    return date(year, m, d)


@dataclass(frozen=True)
class DisasterRecord:
    """One hazard event, normalized from a logical table row."""
    dis_no: str
    hazard_type: str
    hazard_group: Optional[str] = None
    specific_hazard_name: Optional[str] = None
    hazard_type_final: Optional[str] = None
    country_iso: Optional[str] = None
    country_name: Optional[str] = None
    region: Optional[str] = None
    location: Optional[str] = None
    start_year: Optional[int] = None
    start_month: Optional[int] = None
    start_day: Optional[int] = None
    end_year: Optional[int] = None
    end_month: Optional[int] = None
    end_day: Optional[int] = None
    event_season: Optional[str] = None
    total_deaths: Optional[Number] = None
    no_affected: Optional[Number] = None
    total_economic_loss: Optional[Number] = None
    magnitude: Optional[Number] = None
    magnitude_scale: Optional[str] = None
    source_origin: Optional[str] = None
    source_website: Optional[str] = None
    reliability_rating: Optional[str] = None
    notes: Optional[str] = None
    data_source_type: Optional[Number] = None
    source_level: Optional[Number] = None
    no_houses_damaged_destroyed: Optional[Number] = None
    no_houses_damaged: Optional[Number] = None
    no_houses_destroyed: Optional[Number] = None
    no_infrastructure_destroyed_damaged: Optional[str] = None
    glide_number: Optional[str] = None
    # Country cell as written in the table; country_name is the source it was loaded under
    reported_country: Optional[str] = None

    def start_date(self) -> Optional[date]:
        """Comparable start date, or None when the start year is unknown."""
        if self.start_year is None:
            return None
        return make_date(int(self.start_year), self.start_month, self.start_day)

    def start_date_key(self) -> int:
        """Return an integer YYYYMMDD key for sorting by start date (0 if unknown)."""
        d = self.start_date()
        if d is None:
            return 0
        return d.year * 10000 + d.month * 100 + d.day


@dataclass(frozen=True)
class Country:
    """Aggregation root: one source table and its records.

    `status` is "ok", "empty" (source parsed, no records) or "failed"
    (fetch/parse failure, `error` holds the message).
    """
    id: str
    name: str
    iso: str
    coordinates: Optional[Tuple[float, float]] = None
    statistics: Mapping[str, Any] = field(default_factory=dict)
    disasters: Tuple[DisasterRecord, ...] = ()
    status: str = "ok"
    error: Optional[str] = None

    @property
    def has_data(self) -> bool:
        return bool(self.disasters)

    @property
    def failed(self) -> bool:
        return self.status == "failed"


@dataclass(frozen=True)
class RegionConfig:
    """Static grouping of countries under a region key."""
    key: str
    name: str
    short_name: str
    countries: Tuple[str, ...]

    def __contains__(self, country_name: object) -> bool:
        return country_name in self.countries


@dataclass(frozen=True)
class Filter:
    """Filter values. None/empty fields mean "no constraint"."""
    region: Optional[str] = None
    country: Optional[str] = None
    start_date: Optional[str] = None
    end_date: Optional[str] = None
    disaster_types: Tuple[str, ...] = ()

    def replace(self, **changes: Any) -> "Filter":
        if "disaster_types" in changes:
            changes["disaster_types"] = tuple(changes["disaster_types"] or ())
        return replace(self, **changes)

    def is_empty(self) -> bool:
        return not (self.region or self.country or self.start_date or self.end_date or self.disaster_types)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "region": self.region,
            "country": self.country,
            "start_date": self.start_date,
            "end_date": self.end_date,
            "disaster_types": list(self.disaster_types),
        }


@dataclass(frozen=True)
class NotFound:
    """Structured "not found" result for unknown regions/countries."""
    kind: str
    key: str
    message: str

    def to_dict(self) -> Dict[str, Any]:
        return {"error": self.message, "kind": self.kind, "key": self.key}
