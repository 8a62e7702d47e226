"""Human-readable age labels (Chinese) derived from a birthdate."""

from __future__ import annotations

import calendar
from datetime import date


def calculate_age_label(birthdate: str, reference_date: date | None = None) -> str:
    """Return an age label such as ``"2 岁 3 个月"`` or ``"12 天"``.

    Months are only shown for children under six.  An unparseable
    birthdate, or one after ``reference_date``, yields ``""``.
    """
    try:
        birth = date.fromisoformat(birthdate)
    except (TypeError, ValueError):
        return ""
    ref = reference_date or date.today()

    years = ref.year - birth.year
    months = ref.month - birth.month
    days = ref.day - birth.day

    if days < 0:
        # borrow the length of the month before the reference month
        if ref.month > 1:
            prev_year, prev_month = ref.year, ref.month - 1
        else:
            prev_year, prev_month = ref.year - 1, 12
        days += calendar.monthrange(prev_year, prev_month)[1]
        months -= 1

    if months < 0:
        years -= 1
        months += 12

    if years < 0:
        return ""

    parts: list[str] = []
    if years > 0:
        parts.append(f"{years} 岁")
    if months > 0 and years < 6:
        parts.append(f"{months} 个月")
    if not parts:
        parts.append(f"{days} 天" if days > 0 else "刚到来")

    return " ".join(parts)
