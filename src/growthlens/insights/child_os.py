"""
"Child OS" view: six developmental modules, each with a trend status derived
from how tag counts moved between the previous week and the last one.
"""
from datetime import datetime
from enum import Enum
from typing import Optional

from pydantic import BaseModel

from growthlens.domain.log import GrowthLog, LogTag
from growthlens.insights.windows import avg_note_len, count_by_tag, split_windows


class ModuleStatus(str, Enum):
    RISING = "rising"
    STABLE = "stable"
    FLUCTUATING = "fluctuating"


class ModuleView(BaseModel):
    key: str
    name: str
    status: ModuleStatus
    hint: str


def status_from_delta(delta: int) -> ModuleStatus:
    if delta >= 2:
        return ModuleStatus.RISING
    if delta <= -2:
        return ModuleStatus.FLUCTUATING
    return ModuleStatus.STABLE


def _hint(delta: int, rising: str, falling: str, stable: str = "Stable") -> str:
    if delta >= 2:
        return rising
    if delta <= -2:
        return falling
    return stable


def build_child_os(logs: list[GrowthLog], now: Optional[datetime] = None) -> list[ModuleView]:
    recent, previous = split_windows(logs, now)
    rc = count_by_tag(recent)
    pc = count_by_tag(previous)

    def delta(tag: LogTag) -> int:
        return rc[tag] - pc[tag]

    cognition = delta(LogTag.EXPLORATION) + delta(LogTag.FOCUS)
    communication = delta(LogTag.LANGUAGE)
    emotion = delta(LogTag.SELF_ASSERTION)
    rhythm = delta(LogTag.SLEEP) + delta(LogTag.EATING)
    focus = delta(LogTag.FOCUS)

    note_delta = avg_note_len(recent) - avg_note_len(previous)
    meta = 2 if note_delta >= 20 else -2 if note_delta <= -20 else 0

    return [
        ModuleView(
            key="cog",
            name="Cognition (exploration, understanding)",
            status=status_from_delta(cognition),
            hint=_hint(
                cognition,
                "More exploration/focus observations",
                "Fewer exploration/focus observations",
                "Stable lately",
            ),
        ),
        ModuleView(
            key="comm",
            name="Communication",
            status=status_from_delta(communication),
            hint=_hint(communication, '"language" entries are increasing', 'Fewer "language" entries'),
        ),
        ModuleView(
            key="emo",
            name="Emotion, self-assertion",
            status=status_from_delta(emotion),
            hint=_hint(emotion, "Self-assertion is changing noticeably", "Less self-assertion"),
        ),
        ModuleView(
            key="rhythm",
            name="Daily rhythm (sleep, eating)",
            status=status_from_delta(rhythm),
            hint=_hint(rhythm, "More daily-life observations", "Fewer daily-life observations"),
        ),
        ModuleView(
            key="focus",
            name="Focus, switching",
            status=status_from_delta(focus),
            hint=_hint(focus, "More moments of focus", "Less focus observed"),
        ),
        ModuleView(
            key="meta",
            name="Observation detail (parent awareness)",
            status=status_from_delta(meta),
            hint=_hint(meta, "Notes are getting longer lately", "Notes have been shorter lately"),
        ),
    ]
