"""Cron expression parsing on top of APScheduler's ``CronTrigger``.

Accepts the classic 5-field form (``minute hour day month day_of_week``) and
the 6-field form with a leading seconds field. Numeric weekdays follow crontab
numbering (0 and 7 are Sunday) and are translated to weekday names, since
APScheduler counts from Monday.
"""

from __future__ import annotations

import logging

from apscheduler.triggers.cron import CronTrigger

logger = logging.getLogger(__name__)

_CRON_FIELDS = ("minute", "hour", "day", "month", "day_of_week")
_CRON_FIELDS_WITH_SECONDS = ("second", *_CRON_FIELDS)

# Index = crontab weekday number
_CRON_WEEKDAYS = ("sun", "mon", "tue", "wed", "thu", "fri", "sat", "sun")


def parse_cron(cron_expr: str) -> dict[str, str]:
    """Parse a 5- or 6-field cron expression into a dict for CronTrigger.

    Format: "[second] minute hour day month day_of_week"
    Example: "30 2 * * *" → {"minute": "30", "hour": "2", ...}

    Raises:
        ValueError: If expression doesn't have 5 or 6 fields.
    """
    parts = cron_expr.strip().split()
    if len(parts) == 5:
        return dict(zip(_CRON_FIELDS, parts))
    if len(parts) == 6:
        return dict(zip(_CRON_FIELDS_WITH_SECONDS, parts))
    msg = f"Cron expression must have 5 or 6 fields, got {len(parts)}: '{cron_expr}'"
    raise ValueError(msg)


def _expand_weekdays(base: str, step: str) -> range:
    """Expand one numeric day_of_week item (``*``, ``N``, ``N-M``) with a step."""
    if base == "*":
        first, last = 0, 6
    elif "-" in base:
        lo, hi = base.split("-", 1)
        first, last = int(lo), int(hi)
    else:
        first = int(base)
        # crontab reads "N/step" as "N-6/step"
        last = 6 if step else first

    if not (0 <= first <= last <= 7):
        msg = f"Invalid day of week '{base}': values must be within 0-7"
        raise ValueError(msg)

    if step and (not step.isdigit() or int(step) == 0):
        msg = f"Invalid day of week step '{step}'"
        raise ValueError(msg)

    return range(first, last + 1, int(step) if step else 1)


def normalize_day_of_week(field: str) -> str:
    """Translate crontab weekday numbers to APScheduler weekday names.

    Named weekdays and bare ``*`` pass through untouched, so APScheduler
    remains the judge of anything this function does not recognise.

    Raises:
        ValueError: If a numeric item is outside 0-7 or has a bad step.
    """
    items: list[str] = []
    for item in field.split(","):
        base, sep, step = item.partition("/")
        numeric = base == "*" or base.replace("-", "").isdigit()
        if not numeric or (base == "*" and not sep):
            items.append(item)
            continue
        items.extend(_CRON_WEEKDAYS[day] for day in _expand_weekdays(base, step))
    return ",".join(dict.fromkeys(items))


def build_trigger(cron_expr: str, timezone: str = "UTC") -> CronTrigger:
    """Build a CronTrigger for ``cron_expr``.

    Raises:
        ValueError: If the expression cannot be parsed.
    """
    fields = parse_cron(cron_expr)
    fields["day_of_week"] = normalize_day_of_week(fields["day_of_week"])
    return CronTrigger(timezone=timezone, **fields)


def validate_cron(cron_expr: str) -> str | None:
    """Return None if valid, error message if invalid."""
    if not isinstance(cron_expr, str):
        return f"Cron expression must be a string, got {type(cron_expr).__name__}"
    try:
        build_trigger(cron_expr)
    except (ValueError, TypeError) as e:
        logger.debug("Rejected cron expression '%s': %s", cron_expr, e)
        return str(e)
    return None
