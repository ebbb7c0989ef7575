"""
Static configuration (regions + country catalog)
===============================================

- `REGION_CONFIG`: region key -> RegionConfig (display name, short name,
  member country names). A country listed in no region is simply left out of
  region-scoped aggregates.
- `COUNTRY_CATALOG`: ISO code -> country display name, used to name sources
  found on disk.

`load_region_config(path)` reads the same structure from a JSON file:

    {"central_asia": {"name": "Central Asia", "shortName": "Central Asia",
                      "countries": ["Tajikistan", "Uzbekistan"]}}
"""

from __future__ import annotations
import json
from typing import Dict, Iterable, Mapping, Optional
from .models import RegionConfig

Regions = Mapping[str, RegionConfig]


def _region(key: str, name: str, short_name: str, countries: Iterable[str]) -> RegionConfig:
    return RegionConfig(key=key, name=name, short_name=short_name, countries=tuple(countries))


REGION_CONFIG: Dict[str, RegionConfig] = {
    "western_balkans": _region(
        "western_balkans", "Western Balkans & Türkiye", "W. Balkans & Türkiye",
        ["Albania", "Turkey", "Cyprus", "Serbia", "Montenegro",
         "Bosnia and Herzegovina", "North Macedonia", "Kosovo"],
    ),
    "eastern_europe": _region(
        "eastern_europe", "Eastern Europe Region (EE)", "Eastern Europe",
        ["Moldova", "Ukraine", "Belarus"],
    ),
    "south_caucasus": _region(
        "south_caucasus", "South Caucasus", "South Caucasus",
        ["Georgia", "Armenia"],
    ),
    "central_asia": _region(
        "central_asia", "Central Asia", "Central Asia",
        ["Tajikistan", "Uzbekistan", "Turkmenistan", "Kyrgyzstan", "Kazakhstan"],
    ),
}

COUNTRY_CATALOG: Dict[str, str] = {
    "ALB": "Albania",
    "TUR": "Turkey",
    "CYP": "Cyprus",
    "SRB": "Serbia",
    "MNE": "Montenegro",
    "BIH": "Bosnia and Herzegovina",
    "MKD": "North Macedonia",
    "XKX": "Kosovo",
    "MDA": "Moldova",
    "UKR": "Ukraine",
    "BLR": "Belarus",
    "GEO": "Georgia",
    "ARM": "Armenia",
    "TJK": "Tajikistan",
    "UZB": "Uzbekistan",
    "TKM": "Turkmenistan",
    "KGZ": "Kyrgyzstan",
    "KAZ": "Kazakhstan",
}


def all_region_countries(regions: Regions) -> list:
    """All country names from all regions, in configuration order."""
    return [c for r in regions.values() for c in r.countries]


def region_of(country_name: str, regions: Regions) -> Optional[str]:
    """Return the key of the first region listing `country_name` (case-insensitive)."""
    target = (country_name or "").strip().lower()
    for key, r in regions.items():
        if any(c.lower() == target for c in r.countries):
            return key
    return None


def parse_region_config(data: Mapping[str, Mapping]) -> Dict[str, RegionConfig]:
    """Build RegionConfig objects from a plain mapping (JSON shape)."""
    out: Dict[str, RegionConfig] = {}
    for key, item in data.items():
        if not isinstance(item, Mapping):
            raise ValueError(f"Region {key!r} must be an object, got {type(item).__name__}")
        countries = item.get("countries")
        if not isinstance(countries, list) or not all(isinstance(c, str) for c in countries):
            raise ValueError(f"Region {key!r} needs a 'countries' list of names")
        name = str(item.get("name") or key)
        short_name = str(item.get("shortName") or item.get("short_name") or name)
        out[key] = _region(key, name, short_name, countries)
    return out


def load_region_config(path: str) -> Dict[str, RegionConfig]:
    """Load a region configuration JSON file."""
    with open(path, "r", encoding="utf-8") as f:
        data = json.load(f)
    if not isinstance(data, dict):
        raise ValueError(f"Region config must be a JSON object: {path}")
    return parse_region_config(data)
