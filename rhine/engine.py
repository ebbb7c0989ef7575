"""
Core engine (RHINE)
===================

RHINE works like a small offline analytics session:

1) Assemble country tables -> list of Country records (immutable)
2) Keep a *current filter* (QueryState.filter) for the session
3) Update the filter with set_* calls (undo/redo supported)
4) Run aggregations on the canonical records with the current filter

The engine itself holds no aggregation state: every aggregation is a call
into `aggregate.py` with the current Filter passed explicitly, so the same
filter always gives the same answer.
"""

from __future__ import annotations
import json
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Sequence, Union
from . import aggregate
from .assembler import Assembly, records_frame
from .config import REGION_CONFIG, Regions
from .filters import apply_filter, parse_date
from .models import Country, DisasterRecord, Filter, NotFound
from .taxonomy import DISASTER_TYPE_OPTIONS

logger = logging.getLogger(__name__)

_TYPE_KEYS = tuple(v for v, _ in DISASTER_TYPE_OPTIONS)


@dataclass
class QueryState:
    """Holds the current filter of the session."""
    filter: Filter = field(default_factory=Filter)


@dataclass
class RHINE:
    """Regional Hazard INgestion Engine.

    The engine stores:
    - countries: assembled Country objects (sorted by name)
    - regions: region configuration used by every aggregation
    - state: the current Filter

    set_* calls replace `state.filter` only; records are never touched.
    """
    countries: List[Country]
    regions: Regions = field(default_factory=lambda: dict(REGION_CONFIG))
    # Stores CLI commands (for reproducibility of exports)
    command_log: List[str] = field(default_factory=list)
    state: QueryState = field(default_factory=QueryState)

    # Stacks for undo/redo (store Filter snapshots)
    _undo: List[Filter] = field(default_factory=list, init=False)
    _redo: List[Filter] = field(default_factory=list, init=False)

    @classmethod
    def from_assembly(cls, assembly: Assembly, regions: Optional[Regions] = None) -> "RHINE":
        return cls(countries=list(assembly.countries), regions=dict(regions or REGION_CONFIG))

    @property
    def records(self) -> List[DisasterRecord]:
        return [r for c in self.countries for r in c.disasters]

    @property
    def filter(self) -> Filter:
        return self.state.filter

    # ---------------- History (Stacks) ----------------
    def _set(self, flt: Filter) -> None:
        self._undo.append(self.state.filter)
        self._redo.clear()
        self.state.filter = flt

    def undo(self) -> bool:
        if not self._undo:
            return False
        self._redo.append(self.state.filter)
        self.state.filter = self._undo.pop()
        return True

    def redo(self) -> bool:
        if not self._redo:
            return False
        self._undo.append(self.state.filter)
        self.state.filter = self._redo.pop()
        return True

    # ---------------- Filters ----------------
    def reset(self) -> None:
        """Clear every filter field."""
        self._set(Filter())

    def set_region(self, region_key: Optional[str]) -> None:
        if region_key and region_key not in self.regions:
            raise ValueError(f"Unknown region {region_key!r}. Known: {', '.join(self.regions)}")
        self._set(self.filter.replace(region=region_key or None))

    def set_country(self, country: Optional[str]) -> None:
        self._set(self.filter.replace(country=country or None))

    def set_dates(self, start_date: Optional[str], end_date: Optional[str]) -> None:
        # validate now so a bad date fails at the command, not at the next query
        for d in (start_date, end_date):
            if d:
                parse_date(d)
        self._set(self.filter.replace(start_date=start_date or None, end_date=end_date or None))

    def set_types(self, keys: Sequence[str]) -> None:
        keys = [k.strip().lower() for k in keys if k.strip()]
        unknown = [k for k in keys if k not in _TYPE_KEYS]
        if unknown:
            raise ValueError(f"Unknown disaster types {unknown}. Known: {', '.join(_TYPE_KEYS)}")
        self._set(self.filter.replace(disaster_types=keys))

    # ---------------- Queries ----------------
    def selection(self) -> List[DisasterRecord]:
        """Records matching the current filter (canonical order)."""
        return apply_filter(self.records, self.filter, self.regions)

    def regional(self, region_keys: Optional[Sequence[str]] = None) -> Union[aggregate.RegionalDistribution, NotFound]:
        keys = list(region_keys) if region_keys else list(self.regions)
        return aggregate.regional_distribution(self.records, keys, self.filter, self.regions)

    def compare(self, country: str) -> Union[aggregate.CountryComparison, NotFound]:
        return aggregate.country_comparison(self.records, country, self.filter, self.regions)

    def radar(self, region_key: Optional[str] = None) -> Union[aggregate.SeasonalRadar, NotFound]:
        key = region_key or self.filter.region
        if not key:
            return NotFound(kind="region", key="", message="No region selected")
        return aggregate.seasonal_radar(self.records, key, self.filter, self.regions)

    def summary(self) -> Union[aggregate.SummaryStatistics, NotFound]:
        return aggregate.summary_statistics(self.countries, self.filter, self.regions)

    def chronology(self, region_key: Optional[str] = None) -> Union[List[DisasterRecord], NotFound]:
        key = region_key or self.filter.region
        if not key:
            return NotFound(kind="region", key="", message="No region selected")
        return aggregate.chronology(self.records, key, self.filter, self.regions)

    def latest(self, limit: int = 3) -> Union[List[DisasterRecord], NotFound]:
        return aggregate.latest_disasters(self.records, self.filter, self.regions, limit=limit)

    def trend(self, start_year: int, end_year: int) -> Union[aggregate.YearlyCounts, NotFound]:
        return aggregate.yearly_counts(self.records, start_year, end_year, self.filter, self.regions)

    # ---------------- Output operations ----------------
    def export_csv(self, path: str) -> int:
        rows = self.selection()
        records_frame(rows).to_csv(path, index=False, encoding="utf-8")
        logger.info("Exported %d records to %s", len(rows), path)
        return len(rows)

    def export_json(self, path: str) -> int:
        """Export the current selection plus the filter that produced it."""
        rows = self.selection()
        payload: Dict[str, Any] = {
            "filter": self.filter.to_dict(),
            "commands": list(self.command_log),
            "records": json.loads(records_frame(rows).to_json(orient="records")),
        }
        with open(path, "w", encoding="utf-8") as f:
            json.dump(payload, f, ensure_ascii=False, indent=2)
        logger.info("Exported %d records to %s", len(rows), path)
        return len(rows)
