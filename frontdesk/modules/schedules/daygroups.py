"""
Weekday-set codec.

Weekdays are integers 0..6 with 0 = Sunday. A set is rendered as

* ``every day`` when all seven days are present,
* ``<First> to <Last>`` when it forms a single run of three or more
  consecutive days (Saturday -> Sunday counts as consecutive),
* otherwise the abbreviations in weekday order, comma separated.

``decode(encode(days)) == canonical(days)`` holds for every non-empty set.
"""
from typing import Iterable

from frontdesk.core.errors import ValidationFailed

ABBREVIATIONS = ("Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat")
FULL_NAMES = ("Sunday", "Monday", "Tuesday", "Wednesday", "Thursday", "Friday", "Saturday")
EVERY_DAY = "every day"
RUN_SEPARATOR = " to "

# legacy rows store Portuguese day names
_LEGACY_NAMES = {
    "domingo": 0, "dom": 0,
    "segunda": 1, "seg": 1,
    "terça": 2, "terca": 2, "ter": 2,
    "quarta": 3, "qua": 3,
    "quinta": 4, "qui": 4,
    "sexta": 5, "sex": 5,
    "sábado": 6, "sabado": 6, "sáb": 6, "sab": 6,
}

_NAME_TO_DAY = {
    **{name.lower(): i for i, name in enumerate(ABBREVIATIONS)},
    **{name.lower(): i for i, name in enumerate(FULL_NAMES)},
    **_LEGACY_NAMES,
}


def _to_day(value) -> int:
    if isinstance(value, bool):
        raise ValidationFailed("weekdays", f"invalid weekday {value!r}")
    if isinstance(value, int):
        day = value
    elif isinstance(value, str) and value.strip().isdigit():
        day = int(value.strip())
    elif isinstance(value, str) and value.strip().lower() in _NAME_TO_DAY:
        return _NAME_TO_DAY[value.strip().lower()]
    else:
        raise ValidationFailed("weekdays", f"invalid weekday {value!r}")
    if not 0 <= day <= 6:
        raise ValidationFailed("weekdays", f"weekday out of range: {day}")
    return day


def canonical(days: Iterable) -> tuple[int, ...]:
    """Sorted, duplicate-free weekday tuple; rejects empty input and duplicates."""
    parsed = [_to_day(d) for d in days]
    if not parsed:
        raise ValidationFailed("weekdays", "at least one weekday is required")
    if len(set(parsed)) != len(parsed):
        raise ValidationFailed("weekdays", "duplicate weekdays are not allowed")
    return tuple(sorted(parsed))


def _single_run_start(days: tuple[int, ...]) -> int | None:
    present = set(days)
    starts = [d for d in days if (d - 1) % 7 not in present]
    if len(starts) != 1:
        return None
    return starts[0]


def encode(days: Iterable) -> str:
    ordered = canonical(days)
    if len(ordered) == 7:
        return EVERY_DAY
    if len(ordered) > 2:
        start = _single_run_start(ordered)
        if start is not None:
            last = (start + len(ordered) - 1) % 7
            return f"{ABBREVIATIONS[start]}{RUN_SEPARATOR}{ABBREVIATIONS[last]}"
    return ", ".join(ABBREVIATIONS[d] for d in ordered)


def decode(label: str) -> tuple[int, ...]:
    text = (label or "").strip()
    if not text:
        raise ValidationFailed("weekdays", "empty weekday label")
    if text.lower() == EVERY_DAY:
        return tuple(range(7))
    if RUN_SEPARATOR in text:
        first, last = (part.strip() for part in text.split(RUN_SEPARATOR, 1))
        start, end = _to_day(first), _to_day(last)
        length = (end - start) % 7 + 1
        return tuple(sorted((start + i) % 7 for i in range(length)))
    return canonical(part for part in text.split(",") if part.strip())


def weekday_of(day) -> int:
    """Weekday index of a date in this module's numbering (0 = Sunday)."""
    return (day.weekday() + 1) % 7
