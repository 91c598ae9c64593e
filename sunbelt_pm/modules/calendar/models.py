"""Calendar item models and display tables."""

from __future__ import annotations

import datetime as dt
from enum import StrEnum
from typing import Any, Optional

from pydantic import BaseModel, Field


class CalendarItemType(StrEnum):
    TASK = "task"
    RFI = "rfi"
    SUBMITTAL = "submittal"
    MILESTONE = "milestone"
    ONLINE_DATE = "online_date"
    OFFLINE_DATE = "offline_date"
    DELIVERY_DATE = "delivery_date"


# Order of items within a single day
TYPE_PRIORITY: dict[CalendarItemType, int] = {
    CalendarItemType.ONLINE_DATE: 1,
    CalendarItemType.OFFLINE_DATE: 2,
    CalendarItemType.DELIVERY_DATE: 3,
    CalendarItemType.MILESTONE: 4,
    CalendarItemType.TASK: 5,
    CalendarItemType.RFI: 6,
    CalendarItemType.SUBMITTAL: 7,
}

TYPE_LABELS: dict[CalendarItemType, tuple[str, str]] = {
    CalendarItemType.TASK: ("Task", "T"),
    CalendarItemType.RFI: ("RFI", "R"),
    CalendarItemType.SUBMITTAL: ("Submittal", "S"),
    CalendarItemType.MILESTONE: ("Milestone", "M"),
    CalendarItemType.ONLINE_DATE: ("Online", "ON"),
    CalendarItemType.OFFLINE_DATE: ("Offline", "OFF"),
    CalendarItemType.DELIVERY_DATE: ("Delivery", "D"),
}

PROJECT_COLORS: tuple[str, ...] = (
    "#ff6b35",  # Sunbelt orange
    "#3b82f6",
    "#22c55e",
    "#f59e0b",
    "#8b5cf6",
    "#06b6d4",
    "#ec4899",
    "#64748b",
    "#ef4444",
    "#14b8a6",
)

TERTIARY = "#94a3b8"
ORANGE = "#ff6b35"
WARNING = "#f59e0b"
SUCCESS = "#22c55e"
DANGER = "#ef4444"
INFO = "#3b82f6"
NEUTRAL = "#64748b"

STATUS_COLORS: dict[str, str] = {
    "Not Started": TERTIARY,
    "In Progress": ORANGE,
    "Awaiting Response": WARNING,
    "Blocked": DANGER,
    "Completed": SUCCESS,
    "Cancelled": TERTIARY,
    "Open": ORANGE,
    "Answered": SUCCESS,
    "Closed": TERTIARY,
    "Pending": TERTIARY,
    "Submitted": ORANGE,
    "Under Review": WARNING,
    "Approved": SUCCESS,
    "Rejected": DANGER,
    "Approved as Noted": INFO,
}


class CalendarItem(BaseModel):
    """A dated entry on the aggregated project calendar."""

    id: str
    type: CalendarItemType
    title: str
    date: dt.date
    project_id: Optional[str] = None
    project_name: str = ""
    project_number: Optional[str] = None
    color: str = PROJECT_COLORS[0]
    status: Optional[str] = None
    data: Any = Field(default=None, exclude=True)

    @property
    def label(self) -> str:
        return TYPE_LABELS[self.type][0]

    @property
    def short_label(self) -> str:
        return TYPE_LABELS[self.type][1]
