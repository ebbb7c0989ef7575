"""
RHINE package
=============

Regional Hazard INgestion Engine: loads per-country hazard event tables,
normalizes them into `DisasterRecord` objects and aggregates them by region,
country, hazard type, season and year.

- The CLI entry point is in `rhine/cli.py`.
- Table parsing is in `rhine/csvtext.py` and `rhine/loader.py`.
- Multi-country loading is in `rhine/assembler.py`.
- Filters and aggregations are in `rhine/filters.py` and `rhine/aggregate.py`.
"""

__version__ = '0.1.0'
