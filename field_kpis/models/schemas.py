"""
Pydantic models for the technician KPI pipeline.

This module provides the typed record shapes produced by the spreadsheet
parsers, the integrated dataset handed to the KPI engine, KPI results and
display metadata, and the upload/validation contracts of the pipeline's
entry points.

All record and result models are frozen: a dataset is built once per upload
and never mutated afterwards.
"""

import mimetypes
from datetime import datetime, date as DateType
from pathlib import Path
from typing import Iterator, List, Optional, Tuple

from pydantic import BaseModel, ConfigDict, Field, model_validator

from field_kpis.models.enums import KPIName, KPITier, KPIUnit, SourceType


# =============================================================================
# Source Records
# =============================================================================


class Opportunity(BaseModel):
    """
    One row of the Opportunities Report.

    `status` keeps the raw export value; compare against OpportunityStatus.
    `date` is None when the cell could not be parsed, which the cleaning
    stage rejects.
    """
    model_config = ConfigDict(frozen=True)

    date: Optional[DateType] = Field(default=None, description="Opportunity date")
    job_id: str = Field(default="", description="Job identifier")
    customer: str = ""
    email: str = ""
    phone: str = ""
    status: str = Field(default="", description="Won, Lost or Pending")
    technician: str = Field(default="", description="Canonical technician name")
    membership_opportunity: bool = False
    membership_sold: bool = False
    revenue: float = 0.0


class LineItem(BaseModel):
    """One row of the Line Items Sold Report."""
    model_config = ConfigDict(frozen=True)

    invoice_date: Optional[DateType] = None
    customer: str = ""
    job_id: str = ""
    technician: str = ""
    category: str = ""
    line_item: str = Field(default="", description="Free-text line item description")
    quantity: float = 1.0
    price: float = 0.0


class JobTime(BaseModel):
    """
    One row of the Job Times Report.

    Durations are stored in minutes and efficiency as a percentage (0-100).
    """
    model_config = ConfigDict(frozen=True)

    first_appointment: Optional[DateType] = None
    job_id: str = ""
    job_status: str = ""
    customer: str = ""
    technician: str = ""
    opportunity: str = Field(default="", description="Won, Lost or Invalid")
    total: float = 0.0
    total_time: int = Field(default=0, description="Total time in minutes")
    sold_time: int = Field(default=0, description="Sold time in minutes")
    job_efficiency: float = Field(default=0.0, description="Efficiency percentage")


class Appointment(BaseModel):
    """One row of the Appointments Report."""
    model_config = ConfigDict(frozen=True)

    appointment_id: str = ""
    scheduled_for: Optional[datetime] = None
    job_id: str = ""
    customer: str = ""
    appt_status: str = Field(default="", description="Cancelled, Completed or Pending")
    technician: str = ""
    service_category: str = ""
    revenue: float = 0.0


# =============================================================================
# Integrated Dataset
# =============================================================================


class IntegratedDataset(BaseModel):
    """
    The four cleaned record collections plus cross-source identity sets.

    technician_names and job_ids are sorted, distinct unions over all four
    cleaned collections.
    """
    model_config = ConfigDict(frozen=True)

    opportunities: List[Opportunity] = Field(default_factory=list)
    line_items: List[LineItem] = Field(default_factory=list)
    job_times: List[JobTime] = Field(default_factory=list)
    appointments: List[Appointment] = Field(default_factory=list)
    technician_names: List[str] = Field(default_factory=list)
    job_ids: List[str] = Field(default_factory=list)


class DateRange(BaseModel):
    """Earliest and latest record date; both None when there are no dates."""
    model_config = ConfigDict(frozen=True)

    start: Optional[DateType] = None
    end: Optional[DateType] = None


class DataSummary(BaseModel):
    """Record counts and overall date span of an IntegratedDataset."""
    model_config = ConfigDict(
        frozen=True,
        json_schema_extra={
            "example": {
                "total_opportunities": 120,
                "total_line_items": 340,
                "total_job_times": 95,
                "total_appointments": 150,
                "unique_technicians": 6,
                "unique_jobs": 180,
                "date_range": {"start": "2025-06-02", "end": "2025-06-29"}
            }
        }
    )

    total_opportunities: int = Field(..., ge=0)
    total_line_items: int = Field(..., ge=0)
    total_job_times: int = Field(..., ge=0)
    total_appointments: int = Field(..., ge=0)
    unique_technicians: int = Field(..., ge=0)
    unique_jobs: int = Field(..., ge=0)
    date_range: DateRange = Field(default_factory=DateRange)


# =============================================================================
# Week Selection
# =============================================================================


class WeekRange(BaseModel):
    """
    Closed calendar-date interval used as the KPI computation window.

    Monday to Sunday by convention, but any start <= end is accepted.
    """
    model_config = ConfigDict(frozen=True)

    start: DateType
    end: DateType
    label: str = ""

    @model_validator(mode='after')
    def _check_order(self) -> 'WeekRange':
        if self.start > self.end:
            raise ValueError(
                f"Week start {self.start.isoformat()} is after week end {self.end.isoformat()}"
            )
        return self


# =============================================================================
# KPI Results
# =============================================================================


class TechnicianKPIs(BaseModel):
    """
    The eight weekly KPIs for one technician.

    Every value defaults to 0 when its underlying population is empty.
    """
    model_config = ConfigDict(
        frozen=True,
        json_schema_extra={
            "example": {
                "technician": "Jake Harter",
                "average_ticket_value": 750.0,
                "job_close_rate": 100.0,
                "weekly_revenue": 1500.0,
                "job_efficiency": 82.5,
                "membership_win_rate": 50.0,
                "hydro_jetting_jobs_sold": 1,
                "descaling_jobs_sold": 0,
                "water_heater_jobs_sold": 2
            }
        }
    )

    technician: str
    average_ticket_value: float = 0.0
    job_close_rate: float = 0.0
    weekly_revenue: float = 0.0
    job_efficiency: float = 0.0
    membership_win_rate: float = 0.0
    hydro_jetting_jobs_sold: int = 0
    descaling_jobs_sold: int = 0
    water_heater_jobs_sold: int = 0

    def value_of(self, kpi: KPIName) -> float:
        """Return the value of a KPI by key."""
        return getattr(self, KPIName(kpi).value)


class KPIThreshold(BaseModel):
    """Display thresholds for one KPI: at or above `good` is success, at or above `warning` is warning."""
    model_config = ConfigDict(frozen=True)

    good: float
    warning: float


class KPIDefinition(BaseModel):
    """Display metadata for one KPI."""
    model_config = ConfigDict(frozen=True)

    name: str
    unit: KPIUnit
    description: str


class KPIMetric(BaseModel):
    """A single KPI value ready for display."""
    model_config = ConfigDict(frozen=True)

    key: KPIName
    name: str
    value: float
    unit: KPIUnit
    tier: KPITier
    description: str


class TechnicianScorecard(BaseModel):
    """KPIs for one technician with tiered metrics and an overall score."""
    model_config = ConfigDict(frozen=True)

    kpis: TechnicianKPIs
    metrics: List[KPIMetric] = Field(default_factory=list)
    performance_score: int = Field(default=0, ge=0, le=100)


class WeeklyScorecard(BaseModel):
    """Outcome of one weekly scorecard run."""
    model_config = ConfigDict(frozen=True)

    success: bool
    week: WeekRange
    technicians: List[TechnicianScorecard] = Field(default_factory=list)
    summary: Optional[DataSummary] = None
    errors: List[str] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)


# =============================================================================
# Uploads and Validation
# =============================================================================


class UploadedFile(BaseModel):
    """
    An uploaded spreadsheet held fully in memory.

    `content_type` is the MIME type reported by the uploader, when known.
    """
    model_config = ConfigDict(frozen=True)

    filename: str
    content: bytes
    content_type: Optional[str] = None

    @property
    def size(self) -> int:
        return len(self.content)

    @classmethod
    def from_path(cls, path: Path) -> 'UploadedFile':
        """Read a file from disk, guessing its MIME type from the extension."""
        path = Path(path)
        content_type, _ = mimetypes.guess_type(path.name)
        return cls(
            filename=path.name,
            content=path.read_bytes(),
            content_type=content_type,
        )


class UploadedFiles(BaseModel):
    """The four report uploads; any of them may be missing."""
    model_config = ConfigDict(frozen=True)

    opportunities: Optional[UploadedFile] = None
    line_items: Optional[UploadedFile] = None
    job_times: Optional[UploadedFile] = None
    appointments: Optional[UploadedFile] = None

    def get(self, source_type: SourceType) -> Optional[UploadedFile]:
        return getattr(self, SourceType(source_type).value)

    def items(self) -> Iterator[Tuple[SourceType, Optional[UploadedFile]]]:
        for source_type in SourceType:
            yield source_type, self.get(source_type)


class FileRequirements(BaseModel):
    """Expected sheet and required column headers for one source type."""
    model_config = ConfigDict(frozen=True)

    label: str = Field(..., description="Human-readable report name")
    sheet_name: str
    required_columns: Tuple[str, ...]
    optional_columns: Tuple[str, ...] = ()


class ValidationResult(BaseModel):
    """Outcome of the pre-flight upload validation."""
    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "is_valid": False,
                "errors": ["Job Times Report is required"],
                "warnings": []
            }
        }
    )

    is_valid: bool
    errors: List[str] = Field(default_factory=list)
    warnings: List[str] = Field(default_factory=list)
