"""
Filter engine
=============

Pure predicates over record collections. Each one returns a *new* list and
is a no-op when its filter field is empty.

`apply_filter` always runs them in the same order:

    region -> country -> start date -> end date -> hazard types
"""

from __future__ import annotations
from datetime import date
from typing import Iterable, List, Optional, Sequence
from .config import Regions
from .models import Country, DisasterRecord, Filter


def parse_date(value: str) -> date:
    """Parse an ISO `YYYY-MM-DD` filter date."""
    try:
        return date.fromisoformat(str(value).strip())
    except ValueError as e:
        raise ValueError(f"Invalid date {value!r}; expected YYYY-MM-DD") from e


def _region_members(region_key: str, regions: Regions) -> Optional[frozenset]:
    cfg = regions.get(region_key)
    if cfg is None:
        return None
    return frozenset(c.lower() for c in cfg.countries)


def by_region(records: Iterable[DisasterRecord], region_key: Optional[str], regions: Regions) -> List[DisasterRecord]:
    """Keep records whose country is listed in the region (unknown region -> nothing)."""
    if not region_key:
        return list(records)
    members = _region_members(region_key, regions)
    if members is None:
        return []
    return [r for r in records if (r.country_name or "").lower() in members]


def by_country(records: Iterable[DisasterRecord], country: Optional[str]) -> List[DisasterRecord]:
    if not country:
        return list(records)
    target = country.strip().lower()
    return [r for r in records if (r.country_name or "").lower() == target]


def by_start_date(records: Iterable[DisasterRecord], start_date: Optional[str]) -> List[DisasterRecord]:
    """Keep records starting on or after `start_date`."""
    if not start_date:
        return list(records)
    bound = parse_date(start_date)
    out = []
    for r in records:
        d = r.start_date()
        if d is not None and d >= bound:
            out.append(r)
    return out


def by_end_date(records: Iterable[DisasterRecord], end_date: Optional[str]) -> List[DisasterRecord]:
    """Keep records starting on or before `end_date`."""
    if not end_date:
        return list(records)
    bound = parse_date(end_date)
    out = []
    for r in records:
        d = r.start_date()
        if d is not None and d <= bound:
            out.append(r)
    return out


def _type_needles(keys: Sequence[str]) -> List[str]:
    needles: List[str] = []
    for k in keys:
        k = str(k).strip().lower()
        if not k:
            continue
        for n in (k, k.replace("_", " ")):
            if n not in needles:
                needles.append(n)
    return needles


def by_disaster_types(records: Iterable[DisasterRecord], keys: Optional[Sequence[str]]) -> List[DisasterRecord]:
    """Keep records whose specific or generic hazard name contains a selected key."""
    needles = _type_needles(keys or ())
    if not needles:
        return list(records)
    out = []
    for r in records:
        specific = (r.specific_hazard_name or "").lower()
        generic = (r.hazard_type or "").lower()
        if any(n in specific or n in generic for n in needles):
            out.append(r)
    return out


def apply_filter(records: Iterable[DisasterRecord], flt: Optional[Filter], regions: Regions) -> List[DisasterRecord]:
    """Apply every filter field in fixed order. Returns a new list."""
    out = list(records)
    if flt is None:
        return out
    out = by_region(out, flt.region, regions)
    out = by_country(out, flt.country)
    out = by_start_date(out, flt.start_date)
    out = by_end_date(out, flt.end_date)
    out = by_disaster_types(out, flt.disaster_types)
    return out


def filter_countries(countries: Iterable[Country], flt: Optional[Filter], regions: Regions) -> List[Country]:
    """Country-level region/country selection (used by summary statistics)."""
    out = list(countries)
    if flt is None:
        return out
    if flt.region:
        members = _region_members(flt.region, regions)
        out = [] if members is None else [c for c in out if c.name.lower() in members]
    if flt.country:
        target = flt.country.strip().lower()
        out = [c for c in out if c.name.lower() == target]
    return out
