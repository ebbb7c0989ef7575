"""
Table loader (text -> DisasterRecord list)
=========================================

This module turns one country table into a list of `DisasterRecord` objects:

    raw text -> logical records (csvtext.reconstruct)
             -> fields (csvtext.tokenize)
             -> DisasterRecord (normalize_record)

Key ideas:
- Header labels vary between tables (typos, renamed columns), so they go
  through a lookup table first and a mechanical snake_case transform second.
- Missing-value sentinels ("N/A", "#N/A", "-", ...) become None.
- Numeric cells are cleaned of currency symbols, separators and "USD";
  anything still unparsable becomes None instead of raising.
- Rows without an identifier are dropped.
"""

from __future__ import annotations
import dataclasses
import logging
import math
import re
from typing import Any, Dict, List, Mapping, Optional, Sequence
import pandas as pd
from .csvtext import RecordStart, is_empty_row, is_record_start, reconstruct, tokenize
from .models import DisasterRecord
from .taxonomy import normalize_hazard_group, normalize_hazard_type, normalize_season

logger = logging.getLogger(__name__)

HEADER_MAP: Dict[str, str] = {
    "Dis No": "dis_no",
    "DisNo.": "dis_no",
    "DisNo": "dis_no",
    "Hazard  Group": "hazard_group",
    "Hazard Group": "hazard_group",
    "Hazard Type": "hazard_type",
    "Specific Hazard Name": "specific_hazard_name",
    "Hazard Type Final": "hazard_type_final",
    "ISO": "country_iso",
    "Data Source Type": "data_source_type",
    "Source Level": "source_level",
    "Source Origin": "source_origin",
    "Reliability Rating": "reliability_rating",
    "Start Year": "start_year",
    "Start Month": "start_month",
    "Start Day": "start_day",
    "End Year": "end_year",
    "End Month": "end_month",
    "End Day": "end_day",
    "Event Season": "event_season",
    "Magnitude": "magnitude",
    "Magnitude Scale": "magnitude_scale",
    "Region": "region",
    "Country": "country_name",
    "Country/Area": "country_name",
    "Total Deaths": "total_deaths",
    "No. Affected": "no_affected",
    "Total Affected": "no_affected",
    "Location": "location",
    "Total Economic Loss": "total_economic_loss",
    "No. Houses Damaged/Destroyed": "no_houses_damaged_destroyed",
    "No. Houses Damaged": "no_houses_damaged",
    "No. Houses Destroyed": "no_houses_destroyed",
    "No. Infrastucture Destroyed/Damaged": "no_infrastructure_destroyed_damaged",
    "No. Infrastructure Destroyed/Damaged": "no_infrastructure_destroyed_damaged",
    "Glide Number": "glide_number",
    "Source Website": "source_website",
    "Complimentry Resources": "complementary_resources",
    "Notes": "notes",
    "Comments": "comments",
}

NUMERIC_FIELDS = frozenset({
    "start_year", "start_month", "start_day",
    "end_year", "end_month", "end_day",
    "total_deaths", "no_affected", "total_economic_loss",
    "no_houses_damaged_destroyed", "no_houses_damaged", "no_houses_destroyed",
    "magnitude", "source_level", "data_source_type",
})

INT_FIELDS = frozenset({"start_year", "start_month", "start_day", "end_year", "end_month", "end_day"})

MISSING_VALUES = frozenset({"", "n/a", "#n/a", "na", "null", "-"})

RECORD_FIELDS = frozenset(f.name for f in dataclasses.fields(DisasterRecord))

_CURRENCY_RE = re.compile(r"[$€£¥\s,]")
_USD_SUFFIX_RE = re.compile(r"USD$", re.IGNORECASE)
_WORD_RE = re.compile(r"[A-Za-z0-9]+")


def to_snake(label: str) -> str:
    """Mechanical header transform: "No. Gender Female" -> "no_gender_female"."""
    return "_".join(w.lower() for w in _WORD_RE.findall(str(label)))


def normalize_header(label: str) -> str:
    """Map a header label to its canonical field key."""
    s = str(label).strip()
    return HEADER_MAP.get(s) or to_snake(s)


def normalize_value(raw: Any) -> Optional[str]:
    """Trim a cell; return None for blanks and missing-value sentinels."""
    if raw is None:
        return None
    if not isinstance(raw, str) and pd.isna(raw):
        return None
    s = str(raw).strip()
    if s.lower() in MISSING_VALUES:
        return None
    return s


def parse_numeric(raw: Any) -> Optional[float]:
    """Parse a numeric cell.

    "$1,250,000 USD" -> 1250000, "12.5" -> 12.5, "#N/A" -> None, "abc" -> None.
    Whole numbers come back as int.
    """
    s = normalize_value(raw)
    if s is None:
        return None
    cleaned = _USD_SUFFIX_RE.sub("", _CURRENCY_RE.sub("", s)).strip()
    if not cleaned:
        return None
    try:
        num = float(cleaned)
    except ValueError:
        logger.debug("Unparsable numeric value %r", raw)
        return None
    if not math.isfinite(num):
        return None
    if num.is_integer():
        return int(num)
    return num


def _to_int(x: Optional[float]) -> Optional[int]:
    if x is None:
        return None
    return int(x)


def normalize_record(
    fields: Sequence[str],
    headers: Sequence[str],
    defaults: Optional[Mapping[str, Any]] = None,
) -> Optional[DisasterRecord]:
    """Build a DisasterRecord from tokenized fields.

    `headers` are raw header labels (normalized here). `defaults` fills
    `country_name` / `country_iso` when a row leaves them blank.
    Returns None when the row has no identifier.
    """
    raw: Dict[str, Optional[str]] = {}
    for i, label in enumerate(headers):
        key = normalize_header(label)
        value = fields[i] if i < len(fields) else None
        # first column wins when two labels map to the same key
        if raw.get(key) is None:
            raw[key] = normalize_value(value)

    dis_no = raw.get("dis_no")
    if not dis_no:
        return None

    values: Dict[str, Any] = {}
    for key, value in raw.items():
        if key not in RECORD_FIELDS:
            continue
        if key in NUMERIC_FIELDS:
            num = parse_numeric(value)
            values[key] = _to_int(num) if key in INT_FIELDS else num
        else:
            values[key] = value

    values["dis_no"] = dis_no
    values["hazard_type"] = normalize_hazard_type(raw.get("hazard_type"), raw.get("hazard_type_final"))
    values["hazard_group"] = normalize_hazard_group(raw.get("hazard_group"))
    values["specific_hazard_name"] = raw.get("specific_hazard_name") or raw.get("hazard_type")
    values["event_season"] = normalize_season(raw.get("event_season"))
    values["notes"] = raw.get("notes") or raw.get("comments")
    values["reported_country"] = raw.get("country_name")

    for key, value in (defaults or {}).items():
        if key in RECORD_FIELDS and values.get(key) is None:
            values[key] = value

    return DisasterRecord(**values)


def parse_table(
    raw_text: str,
    defaults: Optional[Mapping[str, Any]] = None,
    is_record_start: RecordStart = is_record_start,
) -> List[DisasterRecord]:
    """Parse one country table into records (source order kept)."""
    lines = reconstruct(raw_text, is_record_start)
    if len(lines) < 2:
        return []

    headers = tokenize(lines[0].strip())
    unknown = [h for h in headers if normalize_header(h) not in RECORD_FIELDS]
    if unknown:
        logger.debug("Ignoring columns without a record field: %s", unknown)

    records: List[DisasterRecord] = []
    dropped = 0
    for line in lines[1:]:
        line = line.strip()
        if is_empty_row(line):
            continue
        rec = normalize_record(tokenize(line, len(headers)), headers, defaults)
        if rec is None:
            dropped += 1
            continue
        records.append(rec)
    if dropped:
        logger.debug("Dropped %d rows without an identifier", dropped)
    return records
