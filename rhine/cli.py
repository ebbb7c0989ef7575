"""
RHINE Command Line Interface (CLI)
==================================

Interactive terminal program, run like:

    rhine --data-dir data/
    python -m rhine.cli --csv ALB=data/ALB.csv --csv SRB=data/SRB.csv

It provides:
- Argument parsing (argparse) and logging setup
- A REPL loop (Read-Eval-Print Loop) for commands
- Mapping user commands to engine methods (filters, aggregations, export)

The CLI never modifies the source tables. It loads them once and works on an
in-memory snapshot.
"""

from __future__ import annotations
import argparse
import logging
import shlex
import sys
from typing import Any, List, Optional, Sequence
from .assembler import assemble, parse_source_specs, results_summary, sources_from_directory
from .config import REGION_CONFIG, load_region_config
from .engine import RHINE
from .models import DisasterRecord, NotFound
from .taxonomy import DISASTER_TYPE_OPTIONS

HELP = """
RHINE commands (grouped)
------------------------

1) View / Inspect
   help
   status                           (current filter + source status)
   show [n]                         (first n records of the selection)
   values country|region|type

2) Filtering
   filter region <key>              (example: filter region central_asia)
   filter country "<Country>"       (example: filter country "North Macedonia")
   filter dates <start> <end>       (example: filter dates 2020-01-01 2024-12-31, '-' = open)
   filter types <key> [key ...]     (example: filter types flood earthquake)
   clear region|country|dates|types
   reset

3) Aggregations
   regional [region_key ...]
   compare "<Country>"
   radar [region_key]
   summary
   chronology [region_key]
   latest [n]
   trend <y1> <y2>

4) Export (current selection)
   export csv "<out.csv>"
   export json "<out.json>"

5) History
   undo
   redo

6) Exit
   quit
"""


def build_parser() -> argparse.ArgumentParser:
    ap = argparse.ArgumentParser(prog="rhine", description="Regional hazard event analytics")
    ap.add_argument("--data-dir", help="Directory with one <ISO>.csv/.xlsx table per country")
    ap.add_argument("--csv", action="append", default=[], metavar="ISO=PATH",
                    help="Add one country table (repeatable)")
    ap.add_argument("--regions", help="JSON file overriding the region configuration")
    ap.add_argument("--workers", type=int, default=None, help="Parallel source loaders")
    ap.add_argument("-v", "--verbose", action="count", default=0, help="-v info, -vv debug")
    return ap


def setup_logging(verbosity: int) -> None:
    level = logging.WARNING
    if verbosity == 1:
        level = logging.INFO
    elif verbosity >= 2:
        level = logging.DEBUG
    logging.basicConfig(level=level, format="%(asctime)s %(levelname)s %(name)s: %(message)s")


def main(argv: Optional[Sequence[str]] = None) -> int:
    """Entry point for the RHINE CLI.

    1) Collect sources
    2) Assemble countries
    3) Start an interactive REPL
    """
    args = build_parser().parse_args(argv)
    setup_logging(args.verbose)

    sources: List[Any] = []
    if args.data_dir:
        sources.extend(sources_from_directory(args.data_dir))
    sources.extend(parse_source_specs(args.csv))
    if not sources:
        print("No sources given. Use --data-dir or --csv ISO=PATH.", file=sys.stderr)
        return 2

    regions = load_region_config(args.regions) if args.regions else REGION_CONFIG

    print(f"Loading {len(sources)} sources...")
    assembly = assemble(sources, max_workers=args.workers)
    engine = RHINE.from_assembly(assembly, regions=regions)

    counts = results_summary(assembly)
    print(f"Loaded {len(engine.records)} records from {len(engine.countries)} countries "
          f"(ok={counts['ok']} empty={counts['empty']} failed={counts['failed']}). Type 'help' for commands.")
    for r in assembly.failed:
        print(f"  ! {r.country.name}: {r.error}")

    while True:
        try:
            line = input("rhine> ")
        except EOFError:
            break
        stripped = line.strip()
        if not stripped:
            continue
        if stripped.lower() in ("quit", "exit"):
            break
        cmd0 = stripped.split()[0].lower()
        if cmd0 in ("filter", "clear", "reset", "undo", "redo"):
            engine.command_log.append(stripped)
        try:
            handle(engine, stripped)
        except (ValueError, IndexError, OSError) as e:
            print(f"Error: {e}")
    return 0


def handle(engine: RHINE, line: str) -> None:
    """Handle one CLI command line."""
    parts = shlex.split(line)
    cmd = parts[0].lower()

    if cmd == "help":
        print(HELP)
        return

    if cmd == "status":
        f = engine.filter
        print(f"Filter: region={f.region} country={f.country} dates={f.start_date}..{f.end_date} "
              f"types={list(f.disaster_types)}")
        print(f"Selection size: {len(engine.selection())}")
        for c in engine.countries:
            flag = f" [{c.status}]" if c.status != "ok" else ""
            print(f"  {c.name} ({c.iso}): {len(c.disasters)} records{flag}")
        return

    if cmd == "values":
        field = parts[1].lower()
        if field == "country":
            vals = [c.name for c in engine.countries]
        elif field == "region":
            vals = [f"{k}  ({r.name})" for k, r in engine.regions.items()]
        elif field == "type":
            vals = [f"{v}  ({label})" for v, label in DISASTER_TYPE_OPTIONS]
        else:
            raise ValueError("values field must be: country | region | type")
        for v in vals:
            print(v)
        return

    if cmd == "filter":
        kind = parts[1].lower()
        if kind == "region":
            engine.set_region(parts[2])
        elif kind == "country":
            engine.set_country(parts[2])
        elif kind == "dates":
            start = None if parts[2] == "-" else parts[2]
            end = None if len(parts) < 4 or parts[3] == "-" else parts[3]
            engine.set_dates(start, end)
        elif kind == "types":
            engine.set_types(parts[2:])
        else:
            raise ValueError("filter kind must be: region, country, dates, types")
        print(f"Filtered {kind}. Size={len(engine.selection())}")
        return

    if cmd == "clear":
        kind = parts[1].lower()
        if kind == "region":
            engine.set_region(None)
        elif kind == "country":
            engine.set_country(None)
        elif kind == "dates":
            engine.set_dates(None, None)
        elif kind == "types":
            engine.set_types([])
        else:
            raise ValueError("clear kind must be: region, country, dates, types")
        print(f"Cleared {kind}. Size={len(engine.selection())}")
        return

    if cmd == "reset":
        engine.reset()
        print("Filter reset.")
        return

    if cmd == "undo":
        print("Undone." if engine.undo() else "Nothing to undo.")
        return

    if cmd == "redo":
        print("Redone." if engine.redo() else "Nothing to redo.")
        return

    if cmd == "regional":
        res = engine.regional(parts[1:])
        if _not_found(res):
            return
        for row in res.rows:
            counts = ", ".join(f"{t}={row[t]}" for t in res.disaster_types if t in row)
            print(f"{row['region']}: total={row['total']} | {counts}")
        return

    if cmd == "compare":
        res = engine.compare(parts[1])
        if _not_found(res):
            return
        avg = res.regional_average
        print(f"{res.country.name} vs {avg.name} "
              f"({avg.countries_with_data}/{avg.countries_in_region} countries with data)")
        for t in res.disaster_types:
            print(f"  {t:<20} {res.country.disasters.get(t, 0):>6} {avg.disasters.get(t, 0.0):>8}")
        print(f"  {'Total':<20} {res.country.total:>6} {avg.total:>8}")
        return

    if cmd == "radar":
        res = engine.radar(parts[1] if len(parts) >= 2 else None)
        if _not_found(res):
            return
        for radar in res.country_radars:
            print(f"{radar.country} ({radar.total_events} events)")
            for t in radar.disaster_types:
                pct = " ".join(f"{p['axis']}={p[t]}%" for p in radar.data)
                print(f"  {t}: {pct}")
        return

    if cmd == "summary":
        s = engine.summary()
        if _not_found(s):
            return
        print(f"Disasters={s.total_disasters} deaths={s.total_deaths} affected={s.total_affected} "
              f"economic_loss={s.gdp_loss}")
        print("Key hazards: " + ", ".join(f"{h.name} ({h.count})" for h in s.key_hazards))
        if s.most_affected_country:
            print(f"Most affected: {s.most_affected_country.name} ({s.most_affected_country.count})")
        if s.failed_countries:
            print("Sources unavailable: " + ", ".join(s.failed_countries))
        return

    if cmd == "chronology":
        res = engine.chronology(parts[1] if len(parts) >= 2 else None)
        if _not_found(res):
            return
        _print_rows(res)
        return

    if cmd == "latest":
        n = int(parts[1]) if len(parts) >= 2 else 3
        res = engine.latest(n)
        if _not_found(res):
            return
        _print_rows(res)
        return

    if cmd == "trend":
        y1, y2 = int(parts[1]), int(parts[2])
        res = engine.trend(y1, y2)
        if _not_found(res):
            return
        for row in res.rows:
            counts = ", ".join(f"{t}={row[t]}" for t in res.disaster_types if row[t])
            print(f"{row['year']}: total={row['total']} {counts}")
        return

    if cmd == "export":
        if len(parts) < 3:
            print('Usage: export csv "out.csv"  OR  export json "out.json"')
            return
        fmt = parts[1].lower()
        out_path = parts[2]
        if fmt == "csv":
            n = engine.export_csv(out_path)
        elif fmt == "json":
            n = engine.export_json(out_path)
        else:
            print("Unknown export format. Use: csv or json")
            return
        print(f"Exported {n} records to {out_path}")
        return

    if cmd == "show":
        n = int(parts[1]) if len(parts) >= 2 else 10
        _print_rows(engine.selection()[:n])
        return

    print("Unknown command. Type 'help'.")


def _not_found(res: Any) -> bool:
    if isinstance(res, NotFound):
        print(f"Not found: {res.message}")
        return True
    return False


def _print_rows(rows: Sequence[DisasterRecord]) -> None:
    for e in rows:
        when = e.start_date()
        print(f"[{e.dis_no}] {e.country_name} | {e.hazard_type}/{e.specific_hazard_name} | "
              f"{when.isoformat() if when else '?'} | deaths={e.total_deaths} affected={e.no_affected} "
              f"loss={e.total_economic_loss}")


if __name__ == "__main__":
    sys.exit(main())
