from __future__ import annotations

import io
import math
import numbers
import re
import unicodedata
from datetime import date, datetime, timezone

import pandas as pd


def read_excel_bytes(content: bytes) -> pd.DataFrame:
    """Read .xlsx bytes into a DataFrame.

    v1: reads first sheet.
    """
    bio = io.BytesIO(content)
    df = pd.read_excel(bio)
    df.columns = [str(c).strip() for c in df.columns]
    return df


def normalize_col_name(name: str) -> str:
    """Normalize spreadsheet column names to an ASCII-ish snake_case token.

    Handles accents ("Clasificación"), non-breaking spaces, tabs, and punctuation.
    """

    s = str(name or "").strip().lower()
    s = unicodedata.normalize("NFKD", s)
    s = "".join(ch for ch in s if not unicodedata.combining(ch))
    s = s.replace("\u00a0", " ")
    s = re.sub(r"[\s\t]+", " ", s)
    # keep alnum + spaces, turn the rest into spaces
    s = re.sub(r"[^a-z0-9 ]+", " ", s)
    s = re.sub(r"\s+", "_", s).strip("_")
    return s


def normalize_columns(df: pd.DataFrame) -> pd.DataFrame:
    df = df.copy()
    df.columns = [normalize_col_name(c) for c in df.columns]
    return df


def _is_missing(value) -> bool:
    if value is None:
        return True
    try:
        return bool(pd.isna(value))
    except (TypeError, ValueError):
        return False


def coerce_text(value) -> str | None:
    """Strip a cell/field value to text; empty and NaN become None."""
    if _is_missing(value):
        return None
    s = str(value).replace("\u00a0", " ").strip()
    if not s or s.lower() == "nan":
        return None
    return s


_THOUSANDS_ONLY_RE = re.compile(r"^[+-]?\d{1,3},\d{3}$")


def coerce_float(value) -> float | None:
    """Coerce numeric representations (cells, JSON fields) to float.

    Returns None when value is empty/NaN/infinite, not a number, or an ambiguous
    single-comma thousands string such as "1,000".
    The rightmost of ',' / '.' is the decimal separator: "1,234.5" and "1.234,5"
    both give 1234.5.
    """
    if _is_missing(value) or isinstance(value, bool):
        return None

    if isinstance(value, (int, float)):
        out = float(value)
        return out if math.isfinite(out) else None

    s = str(value).strip().replace(" ", "")
    if not s or s.lower() == "nan":
        return None

    if "," in s and "." in s:
        if s.rfind(".") > s.rfind(","):
            s = s.replace(",", "")  # 1,234.56
        else:
            s = s.replace(".", "").replace(",", ".")  # 1.234,56
    elif s.count(",") > 1:
        s = s.replace(",", "")  # 1,234,567
    elif "," in s:
        if _THOUSANDS_ONLY_RE.match(s):
            return None
        s = s.replace(",", ".")  # 3,5
    elif s.count(".") > 1:
        s = s.replace(".", "")  # 1.234.567

    try:
        out = float(s)
    except ValueError:
        return None
    return out if math.isfinite(out) else None


_DIGITS_RE = re.compile(r"^\d+(\.\d+)?$")

# Epoch values above this are milliseconds (JS Date.getTime(), Firestore exports).
_EPOCH_MS_THRESHOLD = 1e11


def _from_epoch(value: float) -> datetime | None:
    seconds = value / 1000 if abs(value) > _EPOCH_MS_THRESHOLD else value
    try:
        return datetime.fromtimestamp(seconds, tz=timezone.utc)
    except (OverflowError, OSError, ValueError):
        return None


def coerce_datetime(value) -> datetime | None:
    """Coerce datetime-ish values to datetime.

    Accepts datetime, date, pandas Timestamp, epoch seconds or milliseconds
    (numbers or digit strings, read as UTC) and any text pandas can parse.
    Returns None when the value is missing or cannot be parsed.
    """
    if _is_missing(value) or isinstance(value, bool):
        return None

    # pandas Timestamp
    if hasattr(value, "to_pydatetime"):
        return value.to_pydatetime()

    if isinstance(value, datetime):
        return value

    if isinstance(value, date):
        return datetime(value.year, value.month, value.day)

    if isinstance(value, numbers.Real):
        return _from_epoch(float(value)) if math.isfinite(float(value)) else None

    s = str(value).strip()
    if not s:
        return None
    if _DIGITS_RE.match(s):
        return _from_epoch(float(s))
    try:
        return datetime.fromisoformat(s.replace("Z", "+00:00"))
    except ValueError:
        pass

    for fmt in ("%d-%m-%Y %H:%M", "%d/%m/%Y %H:%M", "%d-%m-%Y", "%d/%m/%Y"):
        try:
            return datetime.strptime(s, fmt)
        except ValueError:
            continue

    parsed = pd.to_datetime(s, errors="coerce")
    if pd.isna(parsed):
        return None
    return parsed.to_pydatetime()
