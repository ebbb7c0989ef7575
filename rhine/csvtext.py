"""
Row-oriented table text (reconstruction + tokenizer)
===================================================

Country tables arrive as comma-separated text whose quoting cannot be trusted:
free-text notes may contain raw line breaks and unescaped quotes/commas.

This file provides:
- Record reconstruction (physical lines -> logical records)
- Tokenizer (one logical record -> list of field strings)

Reconstruction does not rely on quotes at all. A line starts a new record only
if it begins with a disaster identifier such as `MET-20240106-WBTC-ALB-0001`;
every other line is a continuation of the record before it.
"""

from __future__ import annotations
import re
from typing import Callable, List

# TYPE-YYYYMMDD-REGION-COUNTRY-SEQ
RECORD_ID_RE = re.compile(r"^[A-Z]{2,6}-\d{8}-[A-Z]{2,6}-[A-Z]{2,3}-\d{4}")

RecordStart = Callable[[str], bool]


def is_record_start(line: str) -> bool:
    """Default record-start predicate: the line begins with a disaster ID."""
    return RECORD_ID_RE.match(line) is not None


def normalize_newlines(text: str) -> str:
    return text.replace("\r\n", "\n").replace("\r", "\n")


def reconstruct(raw_text: str, is_record_start: RecordStart = is_record_start) -> List[str]:
    """Split raw table text into [header, record, record, ...].

    Continuation lines are joined to the current record with a single space.
    Lines seen before the first record start are dropped.
    An empty input returns an empty list.
    """
    if not raw_text:
        return []
    lines = normalize_newlines(raw_text).lstrip("\ufeff").split("\n")

    out: List[str] = [lines[0]]
    current = None
    for line in lines[1:]:
        if is_record_start(line):
            if current is not None:
                out.append(current)
            current = line
        elif current is not None:
            current += " " + line
        # else: garbage/blank before the first record
    if current is not None:
        out.append(current)
    return out


def reconstruct_records(raw_text: str, is_record_start: RecordStart = is_record_start) -> List[str]:
    """Logical records only (header excluded)."""
    return reconstruct(raw_text, is_record_start)[1:]


def tokenize(line: str, expected_fields: int = 0) -> List[str]:
    """Split one logical record into trimmed fields.

    Quote rules:
    - `"` at the start of a field opens quoting
    - inside quotes, `""` is an escaped quote
    - inside quotes, `"` followed by `,` or end of line closes quoting
    - any other `"` is kept as a literal character

    If more than `expected_fields` tokens come out, the extras are joined back
    (with commas) into the last expected field.
    """
    out: List[str] = []
    buf: List[str] = []
    in_quotes = False
    field_start = True
    i = 0
    n = len(line)
    while i < n:
        ch = line[i]
        nxt = line[i + 1] if i + 1 < n else None
        if ch == '"':
            if field_start and not in_quotes:
                in_quotes = True
                field_start = False
            elif in_quotes and nxt == '"':
                buf.append('"')
                i += 1
            elif in_quotes and nxt in (",", None, "\n"):
                in_quotes = False
            else:
                buf.append('"')
        elif ch == "," and not in_quotes:
            out.append("".join(buf).strip())
            buf = []
            field_start = True
        else:
            buf.append(ch)
            field_start = False
        i += 1
    out.append("".join(buf).strip())

    if expected_fields > 0 and len(out) > expected_fields:
        extra = out[expected_fields - 1:]
        out = out[:expected_fields - 1] + [",".join(extra)]
    return out


def is_empty_row(line: str) -> bool:
    """True for blank rows and rows made only of commas."""
    return line.replace(",", "").strip() == ""
