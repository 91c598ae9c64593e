"""Project calendar: item aggregation, month/week grids and ICS export."""

from sunbelt_pm.modules.calendar.ics import ICSEvent, IcsExport, IcsExporter, build_calendar
from sunbelt_pm.modules.calendar.models import (
    PROJECT_COLORS,
    TYPE_PRIORITY,
    CalendarItem,
    CalendarItemType,
)
from sunbelt_pm.modules.calendar.service import (
    CalendarData,
    CalendarService,
    build_calendar_items,
    group_items_by_date,
    status_color,
)

__all__ = [
    "CalendarData",
    "CalendarItem",
    "CalendarItemType",
    "CalendarService",
    "ICSEvent",
    "IcsExport",
    "IcsExporter",
    "PROJECT_COLORS",
    "TYPE_PRIORITY",
    "build_calendar",
    "build_calendar_items",
    "group_items_by_date",
    "status_color",
]
