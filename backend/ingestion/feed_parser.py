"""
Parser for the hourly balloon feed.

The feed is nominally a JSON array of [latitude, longitude, altitude]
triples, but the format is not guaranteed: snapshots have been observed
with stray whitespace inside bracket boundaries, truncated or otherwise
malformed JSON, and HTML error pages served with a 200 status.

Parsing is a chain of stages. Each stage returns either a list of
records or None ("nothing usable, try the next stage"); no exception
crosses a stage boundary and the public entry point never raises.

Stages:
1. HTML guard: error pages yield nothing
2. Normalize: strip whitespace and repair bracket boundaries
3. Strict: decode as JSON and convert each triple
4. Fallback: regex scan for [n,n,n] triples (only if JSON decoding failed)

A triple with any non-finite coordinate is dropped, never defaulted.
"""

import json
import logging
import math
import re
from typing import Any, List, Optional

from backend.models.position import PositionRecord

logger = logging.getLogger(__name__)

HTML_MARKERS = ('<html', '<!DOCTYPE')

_WHITESPACE = re.compile(r'\s+')
_DOUBLE_OPEN = re.compile(r'\[\s*\[')
_DOUBLE_CLOSE = re.compile(r'\]\s*\]')
_SEPARATOR = re.compile(r'\],\s*\[')
_TRIPLE = re.compile(r'\[([-\d.]+),([-\d.]+),([-\d.]+)\]')


_RADIX_PREFIXES = {'0x': 16, '0o': 8, '0b': 2}


def _to_number(value: Any) -> float:
    """
    Loose numeric coercion for feed values.

    Numbers and booleans convert directly, numeric strings are parsed
    (including unsigned 0x/0o/0b literals), null and empty strings count
    as zero, and a single-element list coerces its element. Anything else
    is NaN.
    """
    if isinstance(value, bool):
        return float(value)
    if isinstance(value, (int, float)):
        try:
            return float(value)
        except OverflowError:
            return math.inf
    if value is None:
        return 0.0
    if isinstance(value, list):
        if not value:
            return 0.0
        # [true] stringifies to "true", which is not a number
        if len(value) == 1 and not isinstance(value[0], bool):
            return _to_number('' if value[0] is None else value[0])
        return math.nan
    if isinstance(value, str):
        text = value.strip()
        if not text:
            return 0.0
        if '_' in text:
            return math.nan
        base = _RADIX_PREFIXES.get(text[:2].lower())
        if base is not None:
            digits = text[2:]
            if not digits.isalnum():
                return math.nan
            try:
                return float(int(digits, base))
            except (ValueError, OverflowError):
                return math.nan
        try:
            return float(text)
        except ValueError:
            return math.nan
    return math.nan


def _make_record(values) -> Optional[PositionRecord]:
    """Build a record from the first three values, or None if any is not finite."""
    lat, lon, alt = (_to_number(v) for v in values[:3])
    if not all(math.isfinite(v) for v in (lat, lon, alt)):
        return None
    return PositionRecord(latitude=lat, longitude=lon, altitude=alt)


def is_html(raw_text: str) -> bool:
    """Check whether the upstream returned an HTML page instead of data."""
    return any(marker in raw_text for marker in HTML_MARKERS)


def normalize(raw_text: str) -> str:
    """
    Remove all whitespace and repair bracket boundaries.

    Only the first doubly-opened and doubly-closed bracket runs are
    collapsed; every separator between sub-arrays is normalized.
    """
    text = _WHITESPACE.sub('', raw_text)
    text = _DOUBLE_OPEN.sub('[[', text, count=1)
    text = _DOUBLE_CLOSE.sub(']]', text, count=1)
    text = _SEPARATOR.sub('],[', text)
    return text


def parse_strict(text: str) -> Optional[List[PositionRecord]]:
    """
    Decode `text` as JSON and convert each triple.

    Returns None only when decoding fails, so the caller can fall back
    to the regex scan. A decoded value that is not a list yields [].
    """
    try:
        data = json.loads(text)
    except (ValueError, RecursionError):
        logger.debug('JSON decode failed, trying regex parsing')
        return None

    if not isinstance(data, list):
        return []

    records = []
    for item in data:
        if isinstance(item, list) and len(item) >= 3:
            record = _make_record(item)
            if record is not None:
                records.append(record)
    return records


def parse_fallback(text: str) -> List[PositionRecord]:
    """Recover records from bracket-delimited numeric triples."""
    matches = _TRIPLE.findall(text)
    logger.debug(f'Regex fallback found {len(matches)} candidate triples')

    records = []
    for groups in matches:
        record = _make_record(groups)
        if record is not None:
            records.append(record)
    return records


def parse_feed(raw_text: str) -> List[PositionRecord]:
    """
    Convert raw feed text into position records.

    Never raises: every failure mode degrades to an empty list.
    """
    if not raw_text or is_html(raw_text):
        return []

    text = normalize(raw_text)

    records = parse_strict(text)
    if records is None:
        records = parse_fallback(text)

    logger.debug(f'Parsed {len(records)} balloon positions')
    return records
