"""
Package initialization file for pipeline models.

Exports all Pydantic schemas and enumerations from schemas.py and enums.py so
other modules can import them from field_kpis.models directly.

Usage:
    from field_kpis.models import (
        Opportunity,
        TechnicianKPIs,
        SourceType,
        # ... etc
    )
"""

# =============================================================================
# Enums
# =============================================================================

from field_kpis.models.enums import (
    SourceType,
    OpportunityStatus,
    AppointmentStatus,
    KPIName,
    KPITier,
    KPIUnit,
)

# =============================================================================
# Schemas
# =============================================================================

from field_kpis.models.schemas import (
    # Source records
    Opportunity,
    LineItem,
    JobTime,
    Appointment,
    # Integration
    IntegratedDataset,
    DateRange,
    DataSummary,
    WeekRange,
    # KPI results and display metadata
    TechnicianKPIs,
    KPIThreshold,
    KPIDefinition,
    KPIMetric,
    TechnicianScorecard,
    WeeklyScorecard,
    # Uploads and validation
    UploadedFile,
    UploadedFiles,
    FileRequirements,
    ValidationResult,
)


__all__ = [
    # Enums
    'SourceType',
    'OpportunityStatus',
    'AppointmentStatus',
    'KPIName',
    'KPITier',
    'KPIUnit',
    # Source records
    'Opportunity',
    'LineItem',
    'JobTime',
    'Appointment',
    # Integration
    'IntegratedDataset',
    'DateRange',
    'DataSummary',
    'WeekRange',
    # KPI results
    'TechnicianKPIs',
    'KPIThreshold',
    'KPIDefinition',
    'KPIMetric',
    'TechnicianScorecard',
    'WeeklyScorecard',
    # Uploads and validation
    'UploadedFile',
    'UploadedFiles',
    'FileRequirements',
    'ValidationResult',
]
