"""Display helpers for listing files."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Optional


def format_relative_date(moment: datetime, now: Optional[datetime] = None) -> str:
    """Return a short human label for a modification time.

    Within a day: ``Today, 14:05``; within two days: ``Yesterday, 09:30``;
    within a week: ``3 days ago``; otherwise ``Mar 4, 2024``.
    """
    if moment.tzinfo is None:
        moment = moment.replace(tzinfo=timezone.utc)
    current = now or datetime.now(timezone.utc)
    if current.tzinfo is None:
        current = current.replace(tzinfo=timezone.utc)

    local = moment.astimezone(current.tzinfo)
    days = (current - moment).days
    if days <= 0:
        return f"Today, {local:%H:%M}"
    if days == 1:
        return f"Yesterday, {local:%H:%M}"
    if days < 7:
        return f"{days} days ago"
    return f"{local:%b} {local.day}, {local.year}"


__all__ = ["format_relative_date"]
