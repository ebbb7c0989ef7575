"""
Hazard taxonomy
===============

Country tables spell hazards differently ("Landslide", "Mass_Movement",
"mass movement", "Wildfires", ...). This module maps that vocabulary onto a
small closed set of hazard types used by every aggregation.

The mappings are plain lookup tables (normalized raw key -> canonical label).
Lookup is tiered:
1) an authoritative "final" classification, if present and known
2) exact match of the normalized raw value
3) first table key contained in the normalized raw value
4) "Other"
"""

from __future__ import annotations
import re
from typing import Dict, List, Mapping, Optional, Tuple

EARTHQUAKE = "Earthquake"
FLOOD = "Flood"
FIRE = "Fire"
STORM = "Storm"
EXTREME_TEMPERATURE = "Extreme Temperature"
DROUGHT = "Drought"
MASS_MOVEMENT = "Mass Movement"
TSUNAMI = "Tsunami"
EPIDEMIC = "Epidemic"
OTHER = "Other"

HAZARD_TYPES: Tuple[str, ...] = (
    EARTHQUAKE, FLOOD, FIRE, STORM, EXTREME_TEMPERATURE,
    DROUGHT, MASS_MOVEMENT, TSUNAMI, EPIDEMIC, OTHER,
)

# Filter-selectable keys (value, label); "Other" is not selectable.
DISASTER_TYPE_OPTIONS: Tuple[Tuple[str, str], ...] = (
    ("earthquake", EARTHQUAKE),
    ("flood", FLOOD),
    ("fire", FIRE),
    ("storm", STORM),
    ("extreme_temperature", EXTREME_TEMPERATURE),
    ("drought", DROUGHT),
    ("mass_movement", MASS_MOVEMENT),
    ("tsunami", TSUNAMI),
    ("epidemic", EPIDEMIC),
)

_NON_ALNUM_RE = re.compile(r"[^a-z0-9]+")


def norm_key(s: Optional[str]) -> str:
    """Lowercase and drop everything that is not a letter or digit."""
    if s is None:
        return ""
    return _NON_ALNUM_RE.sub("", str(s).lower())


def _table(pairs: List[Tuple[str, str]]) -> Dict[str, str]:
    # keys are normalized once here; insertion order drives substring matching
    out: Dict[str, str] = {}
    for raw, canonical in pairs:
        out.setdefault(norm_key(raw), canonical)
    return out


HAZARD_TYPE_TABLE: Dict[str, str] = _table([
    ("earthquake", EARTHQUAKE),
    ("earthquakes", EARTHQUAKE),
    ("ground movement", EARTHQUAKE),
    ("flood", FLOOD),
    ("floods", FLOOD),
    ("flash flood", FLOOD),
    ("fire", FIRE),
    ("fires", FIRE),
    ("wildfire", FIRE),
    ("wildfires", FIRE),
    ("forest fire", FIRE),
    ("forest fires", FIRE),
    ("storm", STORM),
    ("storms", STORM),
    ("windstorm", STORM),
    ("extreme temperature", EXTREME_TEMPERATURE),
    ("extreme heat", EXTREME_TEMPERATURE),
    ("heat wave", EXTREME_TEMPERATURE),
    ("cold wave", EXTREME_TEMPERATURE),
    ("drought", DROUGHT),
    ("droughts", DROUGHT),
    ("mass movement", MASS_MOVEMENT),
    ("landslide", MASS_MOVEMENT),
    ("mudslide", MASS_MOVEMENT),
    ("avalanche", MASS_MOVEMENT),
    ("tsunami", TSUNAMI),
    ("epidemic", EPIDEMIC),
    ("volcanic activity", OTHER),
    ("other", OTHER),
])

HYDROLOGICAL = "Hydrological"
METEOROLOGICAL = "Meteorological"
GEOPHYSICAL = "Geophysical"
CLIMATOLOGICAL = "Climatological"
BIOLOGICAL = "Biological"

HAZARD_GROUPS: Tuple[str, ...] = (
    HYDROLOGICAL, METEOROLOGICAL, GEOPHYSICAL, CLIMATOLOGICAL, BIOLOGICAL, OTHER,
)

HAZARD_GROUP_TABLE: Dict[str, str] = _table([
    ("hydrological hazards", HYDROLOGICAL),
    ("hydrological", HYDROLOGICAL),
    ("meteorological hazards", METEOROLOGICAL),
    ("meteorological", METEOROLOGICAL),
    ("geophysical hazards", GEOPHYSICAL),
    ("geophysical", GEOPHYSICAL),
    ("climatological hazards", CLIMATOLOGICAL),
    ("climatological", CLIMATOLOGICAL),
    ("biological hazards", BIOLOGICAL),
    ("biological", BIOLOGICAL),
])

SEASON_TABLE: Dict[str, str] = {
    "spring": "Spring",
    "summer": "Summer",
    "autumn": "Autumn",
    "fall": "Autumn",
    "winter": "Winter",
}


def lookup(raw: Optional[str], table: Mapping[str, str], final: Optional[str] = None,
           default: str = OTHER) -> str:
    """Tiered lookup of `raw` (and optional `final`) in a mapping table."""
    fk = norm_key(final)
    if fk and fk in table:
        return table[fk]

    k = norm_key(raw)
    if not k:
        return default
    if k in table:
        return table[k]
    for key, value in table.items():
        if key in k:
            return value
    return default


def normalize_hazard_type(raw_type: Optional[str], raw_final_type: Optional[str] = None) -> str:
    """Map raw hazard type text to one of HAZARD_TYPES."""
    return lookup(raw_type, HAZARD_TYPE_TABLE, final=raw_final_type)


def normalize_hazard_group(raw_group: Optional[str]) -> Optional[str]:
    """Map raw hazard group text to one of HAZARD_GROUPS (None if blank)."""
    if not norm_key(raw_group):
        return None
    return lookup(raw_group, HAZARD_GROUP_TABLE)


def normalize_season(raw: Optional[str]) -> Optional[str]:
    if raw is None:
        return None
    return SEASON_TABLE.get(str(raw).strip().lower())


def disaster_type_label(key: str) -> Optional[str]:
    """Display label for a filter key (e.g. "mass_movement" -> "Mass Movement")."""
    for value, label in DISASTER_TYPE_OPTIONS:
        if value == key:
            return label
    return None
