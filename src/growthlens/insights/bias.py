"""
Observation bias summary: how often, about what, and in how much detail the
parent has been writing over the last week.
"""
from datetime import datetime
from typing import Optional

from pydantic import BaseModel

from growthlens.domain.log import GrowthLog, TAGS
from growthlens.insights.windows import avg_note_len, count_by_tag, split_windows


class BiasSummary(BaseModel):
    frequency: str
    bias: str
    granularity: str
    summary: str


def build_bias(logs: list[GrowthLog], now: Optional[datetime] = None) -> BiasSummary:
    recent, previous = split_windows(logs, now)

    if not recent:
        frequency = "Hardly any entries yet"
    elif len(recent) <= 2:
        frequency = "On the light side"
    elif len(recent) <= 5:
        frequency = "Every 2-3 days (steady)"
    else:
        frequency = "Very frequent"

    # Highest count wins; ties go to the earlier tag in TAGS order
    counts = count_by_tag(recent)
    top_tag = max(TAGS, key=lambda tag: counts[tag])
    if counts[top_tag] == 0:
        top_tag = None

    bias = (
        f'Mostly "{top_tag.value}" entries'
        if top_tag is not None
        else "No pattern yet"
    )

    note_delta = avg_note_len(recent) - avg_note_len(previous)
    if note_delta >= 20:
        granularity = "Notes are getting more detailed lately"
    elif note_delta <= -20:
        granularity = "Notes have been shorter lately"
    else:
        granularity = "Steady"

    if not recent:
        summary = "Start by writing down one thing you noticed."
    elif top_tag is not None and len(recent) >= 3:
        summary = f'You have been paying attention to "{top_tag.value}" recently.'
    else:
        summary = "You are keeping up observations at a comfortable pace."

    return BiasSummary(frequency=frequency, bias=bias, granularity=granularity, summary=summary)
