"""
Technician KPI Services Module

Business logic for the pipeline. Every service is stateless; records flow
leaf-first through:

- normalization: scalar converters and static lookup tables
- parsers: workbook decoding and per-source row -> record mapping
- cleaning: per-source record filters
- integrator: concurrent parse, clean and cross-source join
- validation: pre-flight upload checks
- kpi_calculator: the eight weekly KPIs plus display tiers
- weeks / formatting: week arithmetic and display helpers
"""

# =============================================================================
# Normalization Exports
# =============================================================================

from field_kpis.services.normalization import (
    UNKNOWN_TECHNICIAN,
    TECHNICIAN_ALIASES,
    parse_currency,
    parse_percentage,
    parse_time_to_minutes,
    normalize_technician_name,
    contains_service_keywords,
    get_hydro_jetting_keywords,
    get_descaling_keywords,
    get_water_heater_keywords,
    parse_date,
    parse_datetime,
)

# =============================================================================
# Parser and Cleaning Exports
# =============================================================================

from field_kpis.services.parsers import (
    FileParseError,
    FILE_VALIDATION_REQUIREMENTS,
    parse_opportunities_file,
    parse_line_items_file,
    parse_job_times_file,
    parse_appointments_file,
)

from field_kpis.services.cleaning import (
    clean_opportunities,
    clean_line_items,
    clean_job_times,
    clean_appointments,
)

# =============================================================================
# Integration and Validation Exports
# =============================================================================

from field_kpis.services.integrator import (
    IntegrationError,
    process_and_integrate_files,
    extract_technician_names,
    extract_job_ids,
    get_data_summary,
)

from field_kpis.services.validation import (
    validate_uploaded_files,
    validate_file_structure,
    is_valid_excel_file,
    is_valid_file_size,
)

# =============================================================================
# KPI Engine Exports
# =============================================================================

from field_kpis.services.kpi_calculator import (
    KPI_THRESHOLDS,
    KPI_DEFINITIONS,
    calculate_technician_kpis,
    calculate_all_technician_kpis,
    get_kpi_tier,
    get_performance_label,
    build_kpi_metrics,
    calculate_performance_score,
)


__all__ = [
    # Normalization
    'UNKNOWN_TECHNICIAN',
    'TECHNICIAN_ALIASES',
    'parse_currency',
    'parse_percentage',
    'parse_time_to_minutes',
    'normalize_technician_name',
    'contains_service_keywords',
    'get_hydro_jetting_keywords',
    'get_descaling_keywords',
    'get_water_heater_keywords',
    'parse_date',
    'parse_datetime',
    # Parsers and cleaning
    'FileParseError',
    'FILE_VALIDATION_REQUIREMENTS',
    'parse_opportunities_file',
    'parse_line_items_file',
    'parse_job_times_file',
    'parse_appointments_file',
    'clean_opportunities',
    'clean_line_items',
    'clean_job_times',
    'clean_appointments',
    # Integration and validation
    'IntegrationError',
    'process_and_integrate_files',
    'extract_technician_names',
    'extract_job_ids',
    'get_data_summary',
    'validate_uploaded_files',
    'validate_file_structure',
    'is_valid_excel_file',
    'is_valid_file_size',
    # KPI engine
    'KPI_THRESHOLDS',
    'KPI_DEFINITIONS',
    'calculate_technician_kpis',
    'calculate_all_technician_kpis',
    'get_kpi_tier',
    'get_performance_label',
    'build_kpi_metrics',
    'calculate_performance_score',
]
