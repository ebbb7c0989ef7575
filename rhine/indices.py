"""
Distinct-id buckets
===================

Aggregations never count rows; they count *distinct record identifiers* per
bucket, so a record ingested twice is still counted once.

A bucket index maps a key (hazard type, (country, type, season), ...) to the
ordered set of `dis_no` values that fall into it. Python dicts keep insertion
order, so buckets and their ids are in first-encountered order.

Example:
- `bucket_ids(records, lambda r: r.hazard_type)["Flood"]` gives the Flood ids.
"""

from __future__ import annotations
from typing import Callable, Dict, Hashable, Iterable, List, Optional
from .models import DisasterRecord

# key -> ordered set of ids (dict used as an ordered set)
Buckets = Dict[Hashable, Dict[str, None]]


def bucket_ids(
    records: Iterable[DisasterRecord],
    key: Callable[[DisasterRecord], Optional[Hashable]],
) -> Buckets:
    """Group distinct record ids by `key`. Records whose key is None are skipped."""
    out: Buckets = {}
    for r in records:
        if not r.dis_no:
            continue
        k = key(r)
        if k is None:
            continue
        out.setdefault(k, {})[r.dis_no] = None
    return out


def bucket_counts(buckets: Buckets) -> Dict[Hashable, int]:
    """Bucket sizes, in first-encountered key order."""
    return {k: len(ids) for k, ids in buckets.items()}


def count_by(
    records: Iterable[DisasterRecord],
    key: Callable[[DisasterRecord], Optional[Hashable]],
) -> Dict[Hashable, int]:
    return bucket_counts(bucket_ids(records, key))


def distinct(records: Iterable[DisasterRecord]) -> List[DisasterRecord]:
    """First occurrence of every id, in input order."""
    seen: Dict[str, None] = {}
    out: List[DisasterRecord] = []
    for r in records:
        if not r.dis_no or r.dis_no in seen:
            continue
        seen[r.dis_no] = None
        out.append(r)
    return out
