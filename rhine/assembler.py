"""
Country data assembler (sources -> Country list)
===============================================

One table per country. Each source is fetched and parsed independently
(fan-out on a thread pool), then the results are merged (fan-in) into a list
of `Country` objects sorted by name, so the output does not depend on which
source finished first.

A source that fails to fetch or parse does not stop the others: it becomes a
Country with no disasters and `status="failed"`, and is listed in
`Assembly.failed`. A source that parses fine but has no rows is `"empty"`.
"""

from __future__ import annotations
import logging
import os
from concurrent.futures import ThreadPoolExecutor
from dataclasses import asdict, dataclass, field, fields, replace
from typing import Any, Dict, List, Mapping, Optional, Sequence, Tuple
import pandas as pd
from .config import COUNTRY_CATALOG
from .csvtext import RecordStart, is_record_start
from .dsa import merge_sort
from .loader import parse_table
from .models import Country, DisasterRecord

logger = logging.getLogger(__name__)

OK = "ok"
EMPTY = "empty"
FAILED = "failed"

TEXT_SUFFIXES = (".csv", ".txt")
EXCEL_SUFFIXES = (".xlsx",)


@dataclass
class TextSource:
    """Table text already in memory."""
    name: str
    iso: str
    text: str
    coordinates: Optional[Tuple[float, float]] = None
    statistics: Mapping[str, Any] = field(default_factory=dict)

    def fetch(self) -> str:
        return self.text


@dataclass
class FileSource:
    """Table text read from a UTF-8 file (a byte-order mark is tolerated)."""
    name: str
    iso: str
    path: str
    coordinates: Optional[Tuple[float, float]] = None
    statistics: Mapping[str, Any] = field(default_factory=dict)

    def fetch(self) -> str:
        with open(self.path, "r", encoding="utf-8-sig", newline="") as f:
            return f.read()


@dataclass
class ExcelSource:
    """First (or named) sheet of an .xlsx workbook, serialized to table text."""
    name: str
    iso: str
    path: str
    sheet: Any = 0
    coordinates: Optional[Tuple[float, float]] = None
    statistics: Mapping[str, Any] = field(default_factory=dict)

    def fetch(self) -> str:
        df = pd.read_excel(self.path, sheet_name=self.sheet, engine="openpyxl", dtype=str)
        df.rename(columns={c: str(c).strip() for c in df.columns}, inplace=True)
        return df.to_csv(index=False)


@dataclass
class SourceResult:
    """Outcome of one source: status is ok / empty / failed."""
    country: Country
    status: str
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.status != FAILED


@dataclass
class Assembly:
    """Merged ingestion result."""
    countries: List[Country]
    results: List[SourceResult]

    @property
    def failed(self) -> List[SourceResult]:
        return [r for r in self.results if r.status == FAILED]

    def records(self) -> List[DisasterRecord]:
        """All records, in country order then source order."""
        return [r for c in self.countries for r in c.disasters]

    def country(self, name: str) -> Optional[Country]:
        target = name.strip().lower()
        for c in self.countries:
            if c.name.lower() == target:
                return c
        return None


def _country(source: Any, disasters: Tuple[DisasterRecord, ...], status: str, error: Optional[str] = None) -> Country:
    return Country(
        id=source.iso.lower(),
        name=source.name,
        iso=source.iso,
        coordinates=getattr(source, "coordinates", None),
        statistics=dict(getattr(source, "statistics", None) or {}),
        disasters=disasters,
        status=status,
        error=error,
    )


def load_source(source: Any, is_record_start: RecordStart = is_record_start) -> SourceResult:
    """Fetch and parse one source. Never raises; failures become a FAILED result."""
    try:
        text = source.fetch()
        records = parse_table(
            text,
            defaults={"country_name": source.name, "country_iso": source.iso},
            is_record_start=is_record_start,
        )
    except Exception as e:
        msg = f"{type(e).__name__}: {e}"
        logger.warning("Source %s (%s) failed: %s", source.name, source.iso, msg)
        return SourceResult(country=_country(source, (), FAILED, msg), status=FAILED, error=msg)

    # the source decides the country; the table's own cell stays in reported_country
    records = [replace(r, country_name=source.name, country_iso=source.iso) for r in records]
    renamed = {r.reported_country for r in records if r.reported_country and r.reported_country != source.name}
    if renamed:
        logger.debug("Source %s reports its rows as %s", source.name, sorted(renamed))

    status = OK if records else EMPTY
    logger.info("Loaded %d records for %s (%s)", len(records), source.name, status)
    return SourceResult(country=_country(source, tuple(records), status), status=status)


def assemble(
    sources: Sequence[Any],
    max_workers: Optional[int] = None,
    is_record_start: RecordStart = is_record_start,
) -> Assembly:
    """Load every source concurrently and merge into a name-sorted Country list."""
    sources = list(sources)
    if not sources:
        return Assembly(countries=[], results=[])

    with ThreadPoolExecutor(max_workers=max_workers) as pool:
        results = list(pool.map(lambda s: load_source(s, is_record_start), sources))

    results = merge_sort(results, key=lambda r: r.country.name)
    if any(r.status == FAILED for r in results):
        logger.warning("%d of %d sources failed", sum(r.status == FAILED for r in results), len(results))
    return Assembly(countries=[r.country for r in results], results=results)


def sources_from_directory(path: str, catalog: Mapping[str, str] = COUNTRY_CATALOG) -> List[Any]:
    """One source per `<ISO>.csv|.txt|.xlsx` file in `path`.

    Display names come from `catalog`; an unknown ISO code is used as the name.
    """
    out: List[Any] = []
    for fn in sorted(os.listdir(path)):
        stem, ext = os.path.splitext(fn)
        ext = ext.lower()
        full = os.path.join(path, fn)
        if not os.path.isfile(full) or ext not in TEXT_SUFFIXES + EXCEL_SUFFIXES:
            continue
        iso = stem.strip().upper()
        name = catalog.get(iso, iso)
        if ext in EXCEL_SUFFIXES:
            out.append(ExcelSource(name=name, iso=iso, path=full))
        else:
            out.append(FileSource(name=name, iso=iso, path=full))
    return out


def parse_source_specs(specs: Sequence[str], catalog: Mapping[str, str] = COUNTRY_CATALOG) -> List[Any]:
    """Build sources from CLI specs like `ALB=data/albania.csv`."""
    out: List[Any] = []
    for spec in specs:
        if "=" not in spec:
            raise ValueError(f"Expected ISO=PATH, got {spec!r}")
        iso, p = spec.split("=", 1)
        iso = iso.strip().upper()
        name = catalog.get(iso, iso)
        if p.lower().endswith(EXCEL_SUFFIXES):
            out.append(ExcelSource(name=name, iso=iso, path=p))
        else:
            out.append(FileSource(name=name, iso=iso, path=p))
    return out


def records_frame(records: Sequence[DisasterRecord]) -> pd.DataFrame:
    """Records as a DataFrame (one column per record field)."""
    cols = [f.name for f in fields(DisasterRecord)]
    return pd.DataFrame([asdict(r) for r in records], columns=cols)


def results_summary(assembly: Assembly) -> Dict[str, int]:
    """Count of sources per status."""
    out = {OK: 0, EMPTY: 0, FAILED: 0}
    for r in assembly.results:
        out[r.status] = out.get(r.status, 0) + 1
    return out
