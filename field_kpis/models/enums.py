"""
Enumeration definitions for the technician KPI pipeline.

All enums inherit from both `str` and `Enum` so that members compare equal to
the raw strings found in the spreadsheet exports and serialize cleanly with
Pydantic models.
"""

from enum import Enum


class SourceType(str, Enum):
    """
    The four spreadsheet exports consumed by the pipeline.

    - opportunities: Opportunities Report (sheet "Opportunities")
    - line_items: Line Items Sold Report (sheet "Sold Line Items")
    - job_times: Job Times Report (sheet "Job Times")
    - appointments: Appointments Report (sheet "Appointments")
    """
    OPPORTUNITIES = "opportunities"
    LINE_ITEMS = "line_items"
    JOB_TIMES = "job_times"
    APPOINTMENTS = "appointments"


class OpportunityStatus(str, Enum):
    """Sales opportunity outcome as exported in the Opportunities Report."""
    WON = "Won"
    LOST = "Lost"
    PENDING = "Pending"


class AppointmentStatus(str, Enum):
    """Appointment lifecycle state as exported in the Appointments Report."""
    CANCELLED = "Cancelled"
    COMPLETED = "Completed"
    PENDING = "Pending"


class KPIName(str, Enum):
    """
    Keys of the eight weekly technician KPIs.

    Values match the field names of TechnicianKPIs so a KPI can be looked up
    with getattr(kpis, KPIName.X.value).
    """
    AVERAGE_TICKET_VALUE = "average_ticket_value"
    JOB_CLOSE_RATE = "job_close_rate"
    WEEKLY_REVENUE = "weekly_revenue"
    JOB_EFFICIENCY = "job_efficiency"
    MEMBERSHIP_WIN_RATE = "membership_win_rate"
    HYDRO_JETTING_JOBS_SOLD = "hydro_jetting_jobs_sold"
    DESCALING_JOBS_SOLD = "descaling_jobs_sold"
    WATER_HEATER_JOBS_SOLD = "water_heater_jobs_sold"


class KPITier(str, Enum):
    """
    Display tier for a KPI value against its threshold pair.

    - success: value >= good threshold
    - warning: value >= warning threshold
    - danger: value > 0 but below warning
    - neutral: no activity (value <= 0)
    """
    SUCCESS = "success"
    WARNING = "warning"
    DANGER = "danger"
    NEUTRAL = "neutral"


class KPIUnit(str, Enum):
    """Display unit for a KPI value."""
    CURRENCY = "currency"
    PERCENT = "percent"
    COUNT = "count"
