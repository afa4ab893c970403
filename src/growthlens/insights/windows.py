from collections import Counter
from datetime import datetime, timedelta
from typing import Optional

from growthlens.domain.log import GrowthLog, LogTag, TAGS, utc_now

DAY = timedelta(days=1)


def split_windows(
    logs: list[GrowthLog],
    now: Optional[datetime] = None,
) -> tuple[list[GrowthLog], list[GrowthLog]]:
    """
    Split logs into the last 7 days and the 7 days before that.

    recent:   age <= 7 days
    previous: 7 days < age <= 14 days
    """
    now = now or utc_now()
    recent, previous = [], []
    for log in logs:
        age = now - log.created_at
        if age <= 7 * DAY:
            recent.append(log)
        elif age <= 14 * DAY:
            previous.append(log)
    return recent, previous


def count_by_tag(logs: list[GrowthLog]) -> dict[LogTag, int]:
    counts = Counter(log.tag for log in logs)
    return {tag: counts.get(tag, 0) for tag in TAGS}


def avg_note_len(logs: list[GrowthLog]) -> int:
    if not logs:
        return 0
    return round(sum(len(log.note) for log in logs) / len(logs))
