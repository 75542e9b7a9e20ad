from __future__ import annotations

import math
import re
from collections import defaultdict
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any, Generic, TypeVar
from urllib.parse import urlparse

from flask import request

from app.alumnet.errors import ValidationError

T = TypeVar("T")

_ISO_DATE_RE = re.compile(r"^\d{4}-\d{2}-\d{2}$")
_EMAIL_RE = re.compile(r"^[^@\s]+@[^@\s]+\.[^@\s]+$")


class FieldErrors:
    """Collects per-field messages; raise_if_any() turns them into a ValidationError."""

    def __init__(self) -> None:
        self._errors: dict[str, list[str]] = defaultdict(list)

    def add(self, field_name: str, message: str) -> None:
        self._errors[field_name].append(message)

    def __bool__(self) -> bool:
        return bool(self._errors)

    def as_dict(self) -> dict[str, list[str]]:
        return {k: list(v) for k, v in self._errors.items()}

    def raise_if_any(self) -> None:
        if self._errors:
            raise ValidationError(self.as_dict())


def clean_str(value: Any) -> str | None:
    """Strip strings; blank and non-string values become None."""
    if not isinstance(value, str):
        return None
    value = value.strip()
    return value or None


def check_length(
    errors: FieldErrors,
    payload: dict,
    field_name: str,
    *,
    min_len: int | None = None,
    max_len: int | None = None,
    required: bool = False,
) -> str | None:
    raw = payload.get(field_name)
    if raw is not None and not isinstance(raw, str):
        errors.add(field_name, "Must be a string.")
        return None
    value = clean_str(raw)
    if value is None:
        if required:
            errors.add(field_name, "This field is required.")
        return None
    if min_len is not None and len(value) < min_len:
        errors.add(field_name, f"Must be at least {min_len} characters.")
    if max_len is not None and len(value) > max_len:
        errors.add(field_name, f"Must be at most {max_len} characters.")
    return value


def parse_iso_date(s: str | None) -> date | None:
    """Parse YYYY-MM-DD; raises ValueError on anything else."""
    if not s:
        return None
    s = s.strip()
    if not s:
        return None
    if not _ISO_DATE_RE.match(s):
        raise ValueError(f"Not an ISO date: {s!r}")
    return date.fromisoformat(s)


def parse_iso_datetime(s: str | None) -> datetime | None:
    if not s:
        return None
    s = s.strip()
    if not s:
        return None
    value = datetime.fromisoformat(s.replace("Z", "+00:00"))
    if value.tzinfo is not None:
        # Stored as naive UTC.
        value = (value - value.utcoffset()).replace(tzinfo=None)
    return value


def check_iso_date(errors: FieldErrors, payload: dict, field_name: str) -> date | None:
    raw = payload.get(field_name)
    if raw is not None and not isinstance(raw, str):
        errors.add(field_name, "Must be a date string (YYYY-MM-DD).")
        return None
    try:
        return parse_iso_date(raw)
    except ValueError:
        errors.add(field_name, "Must be a valid date (YYYY-MM-DD).")
        return None


def is_valid_url(value: str) -> bool:
    parsed = urlparse(value)
    return parsed.scheme in ("http", "https") and bool(parsed.netloc)


def is_valid_email(value: str) -> bool:
    return bool(_EMAIL_RE.match(value))


def parse_page(raw: Any) -> int:
    """1-based page index; anything unparsable or below 1 becomes 1."""
    try:
        page = int(raw)
    except (TypeError, ValueError):
        return 1
    return max(page, 1)


@dataclass
class Page(Generic[T]):
    items: list[T]
    page: int
    page_size: int
    total: int
    total_pages: int = field(init=False)

    def __post_init__(self) -> None:
        self.total_pages = max(math.ceil(self.total / self.page_size), 1)


def paginate(query, page: int, page_size: int) -> Page:
    """Apply offset/limit to an ordered Query and count the unpaged total."""
    page = max(page, 1)
    total = query.order_by(None).count()
    items = query.offset((page - 1) * page_size).limit(page_size).all()
    return Page(items=items, page=page, page_size=page_size, total=total)


def isoformat(value: date | datetime | None) -> str | None:
    return value.isoformat() if value is not None else None


def json_body() -> dict[str, Any]:
    """The request's JSON object; an empty or unparsable body counts as {}."""
    payload = request.get_json(silent=True)
    if payload is None:
        return {}
    if not isinstance(payload, dict):
        raise ValidationError({"body": ["Expected a JSON object."]})
    return payload


def page_to_dict(page: Page, serialize) -> dict[str, Any]:
    return {
        "items": [serialize(item) for item in page.items],
        "page": page.page,
        "pageSize": page.page_size,
        "total": page.total,
        "totalPages": page.total_pages,
    }
