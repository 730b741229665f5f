"""
Record Parsers

This module turns the four spreadsheet exports into typed record sequences.

Workbooks are decoded with pandas (openpyxl engine) into header-keyed rows;
each source type then has a row parser that applies the normalization
utilities per field:
- identity fields (job, appointment, customer...) are cast to text
- money, percentage and duration cells go through the matching normalizer
  only when the decoder did not already produce a number
- Yes/No columns become booleans by exact comparison with "Yes"
- technician columns are mapped to canonical names

Row order is preserved and no deduplication happens here; invalid rows are
removed later by the cleaning stage.

Sheet names and required headers per source type live in
FILE_VALIDATION_REQUIREMENTS, shared with the validation gate.
"""

import io
import logging
import math
import re
from types import MappingProxyType
from typing import Any, Callable, Dict, Iterable, List, Mapping

import pandas as pd

from field_kpis.models import (
    Appointment,
    FileRequirements,
    JobTime,
    LineItem,
    Opportunity,
    SourceType,
    UploadedFile,
)
from field_kpis.services.normalization import (
    normalize_technician_name,
    parse_currency,
    parse_percentage,
    parse_time_to_minutes,
    try_parse_date,
    try_parse_datetime,
)

logger = logging.getLogger(__name__)


class FileParseError(ValueError):
    """A workbook could not be decoded or lacks the expected structure."""


# =============================================================================
# CONSTANTS - Column contract per source type
# =============================================================================

OPPORTUNITIES_REQUIRED_COLUMNS: List[str] = [
    'Date',
    'Job',
    'Customer',
    'Status',
    'Opportunity Owner',
    'Revenue',
]
OPPORTUNITIES_OPTIONAL_COLUMNS: List[str] = [
    'Email',
    'Phone',
    'Membership Opportunity',
    'Membership Sold',
]

LINE_ITEMS_REQUIRED_COLUMNS: List[str] = [
    'Invoice Date',
    'Job',
    'Opp. Owner',
    'Line Item',
    'Price',
]
LINE_ITEMS_OPTIONAL_COLUMNS: List[str] = [
    'Customer',
    'Category',
    'Quantity',
]

JOB_TIMES_REQUIRED_COLUMNS: List[str] = [
    'First Appointment',
    'Job',
    'Job Status',
    'Opportunity Owner',
    'Job Efficiency',
]
JOB_TIMES_OPTIONAL_COLUMNS: List[str] = [
    'Customer',
    'Opportunity',
    'Total',
    'Total Time',
    'Sold Time',
]

APPOINTMENTS_REQUIRED_COLUMNS: List[str] = [
    'Scheduled For',
    'Job',
    'Technician',
    'Appt Status',
    'Revenue',
]
APPOINTMENTS_OPTIONAL_COLUMNS: List[str] = [
    'Appointment',
    'Customer',
    'Service Category',
]

FILE_VALIDATION_REQUIREMENTS: Mapping[SourceType, FileRequirements] = MappingProxyType({
    SourceType.OPPORTUNITIES: FileRequirements(
        label='Opportunities Report',
        sheet_name='Opportunities',
        required_columns=tuple(OPPORTUNITIES_REQUIRED_COLUMNS),
        optional_columns=tuple(OPPORTUNITIES_OPTIONAL_COLUMNS),
    ),
    SourceType.LINE_ITEMS: FileRequirements(
        label='Line Items Sold Report',
        sheet_name='Sold Line Items',
        required_columns=tuple(LINE_ITEMS_REQUIRED_COLUMNS),
        optional_columns=tuple(LINE_ITEMS_OPTIONAL_COLUMNS),
    ),
    SourceType.JOB_TIMES: FileRequirements(
        label='Job Times Report',
        sheet_name='Job Times',
        required_columns=tuple(JOB_TIMES_REQUIRED_COLUMNS),
        optional_columns=tuple(JOB_TIMES_OPTIONAL_COLUMNS),
    ),
    SourceType.APPOINTMENTS: FileRequirements(
        label='Appointments Report',
        sheet_name='Appointments',
        required_columns=tuple(APPOINTMENTS_REQUIRED_COLUMNS),
        optional_columns=tuple(APPOINTMENTS_OPTIONAL_COLUMNS),
    ),
})

YES_TOKEN: str = 'Yes'

_INTEGER_PREFIX = re.compile(r'\s*[+-]?\d+')


# =============================================================================
# WORKBOOK DECODING
# =============================================================================

def load_sheet(content: bytes, sheet_name: str) -> pd.DataFrame:
    """
    Decode one sheet of an Excel workbook into a DataFrame.

    The first row is the header. Cells keep their decoded Python types
    (str, int, float, datetime); empty cells become None.

    Args:
        content: Raw workbook bytes
        sheet_name: Sheet to read

    Returns:
        DataFrame with stripped string column names

    Raises:
        FileParseError: If the workbook cannot be decoded or the sheet is missing
    """
    try:
        with pd.ExcelFile(io.BytesIO(content)) as workbook:
            if sheet_name not in workbook.sheet_names:
                raise FileParseError(f'Sheet "{sheet_name}" not found in file')
            df = workbook.parse(sheet_name, dtype=object)
    except FileParseError:
        raise
    except Exception as e:
        raise FileParseError(f'Failed to parse Excel file: {str(e)}') from e

    df.columns = [str(col).strip() for col in df.columns]
    return df.astype(object).where(pd.notna(df), None)


def read_sheet_rows(content: bytes, sheet_name: str) -> List[Dict[str, Any]]:
    """Decode a sheet into a list of header-keyed row mappings."""
    df = load_sheet(content, sheet_name)
    return df.to_dict(orient='records')


# =============================================================================
# FIELD COERCION
# =============================================================================

def _is_number(value: Any) -> bool:
    return (
        isinstance(value, (int, float))
        and not isinstance(value, bool)
        and not (isinstance(value, float) and math.isnan(value))
    )


def _to_text(value: Any) -> str:
    if value is None or (isinstance(value, float) and math.isnan(value)):
        return ''
    # Numeric job ids come back as floats when the column has blanks
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value).strip()


def _money(value: Any) -> float:
    if _is_number(value):
        return float(value)
    return parse_currency(value)


def _percentage(value: Any) -> float:
    if _is_number(value):
        return float(value)
    return parse_percentage(value)


def _minutes(value: Any) -> int:
    if _is_number(value):
        return int(round(value))
    return parse_time_to_minutes(value)


def _quantity(value: Any) -> float:
    if _is_number(value):
        return float(value)
    match = _INTEGER_PREFIX.match(str(value)) if value is not None else None
    # Blank or non-numeric quantity means a single unit
    return float(int(match.group(0))) if match else 1.0


def _is_yes(value: Any) -> bool:
    return value == YES_TOKEN


# =============================================================================
# ROW PARSERS
# =============================================================================

def parse_opportunity_rows(rows: Iterable[Mapping[str, Any]]) -> List[Opportunity]:
    """Map Opportunities Report rows to Opportunity records."""
    return [
        Opportunity(
            date=try_parse_date(row.get('Date')),
            job_id=_to_text(row.get('Job')),
            customer=_to_text(row.get('Customer')),
            email=_to_text(row.get('Email')),
            phone=_to_text(row.get('Phone')),
            status=_to_text(row.get('Status')),
            technician=normalize_technician_name(row.get('Opportunity Owner')),
            membership_opportunity=_is_yes(row.get('Membership Opportunity')),
            membership_sold=_is_yes(row.get('Membership Sold')),
            revenue=_money(row.get('Revenue')),
        )
        for row in rows
    ]


def parse_line_item_rows(rows: Iterable[Mapping[str, Any]]) -> List[LineItem]:
    """Map Line Items Sold Report rows to LineItem records."""
    return [
        LineItem(
            invoice_date=try_parse_date(row.get('Invoice Date')),
            customer=_to_text(row.get('Customer')),
            job_id=_to_text(row.get('Job')),
            technician=normalize_technician_name(row.get('Opp. Owner')),
            category=_to_text(row.get('Category')),
            line_item=_to_text(row.get('Line Item')),
            quantity=_quantity(row.get('Quantity')),
            price=_money(row.get('Price')),
        )
        for row in rows
    ]


def parse_job_time_rows(rows: Iterable[Mapping[str, Any]]) -> List[JobTime]:
    """Map Job Times Report rows to JobTime records."""
    return [
        JobTime(
            first_appointment=try_parse_date(row.get('First Appointment')),
            job_id=_to_text(row.get('Job')),
            job_status=_to_text(row.get('Job Status')),
            customer=_to_text(row.get('Customer')),
            technician=normalize_technician_name(row.get('Opportunity Owner')),
            opportunity=_to_text(row.get('Opportunity')),
            total=_money(row.get('Total')),
            total_time=_minutes(row.get('Total Time')),
            sold_time=_minutes(row.get('Sold Time')),
            job_efficiency=_percentage(row.get('Job Efficiency')),
        )
        for row in rows
    ]


def parse_appointment_rows(rows: Iterable[Mapping[str, Any]]) -> List[Appointment]:
    """Map Appointments Report rows to Appointment records."""
    return [
        Appointment(
            appointment_id=_to_text(row.get('Appointment')),
            scheduled_for=try_parse_datetime(row.get('Scheduled For')),
            job_id=_to_text(row.get('Job')),
            customer=_to_text(row.get('Customer')),
            appt_status=_to_text(row.get('Appt Status')),
            technician=normalize_technician_name(row.get('Technician')),
            service_category=_to_text(row.get('Service Category')),
            revenue=_money(row.get('Revenue')),
        )
        for row in rows
    ]


# =============================================================================
# FILE PARSERS
# =============================================================================

def _parse_file(
    file: UploadedFile,
    source_type: SourceType,
    row_parser: Callable[[Iterable[Mapping[str, Any]]], list],
) -> list:
    requirements = FILE_VALIDATION_REQUIREMENTS[source_type]
    rows = read_sheet_rows(file.content, requirements.sheet_name)
    records = row_parser(rows)
    logger.info(
        f"Parsed {len(records)} {source_type.value} rows from '{file.filename}'"
    )
    return records


def parse_opportunities_file(file: UploadedFile) -> List[Opportunity]:
    """Parse the "Opportunities" sheet of an Opportunities Report."""
    return _parse_file(file, SourceType.OPPORTUNITIES, parse_opportunity_rows)


def parse_line_items_file(file: UploadedFile) -> List[LineItem]:
    """Parse the "Sold Line Items" sheet of a Line Items Sold Report."""
    return _parse_file(file, SourceType.LINE_ITEMS, parse_line_item_rows)


def parse_job_times_file(file: UploadedFile) -> List[JobTime]:
    """Parse the "Job Times" sheet of a Job Times Report."""
    return _parse_file(file, SourceType.JOB_TIMES, parse_job_time_rows)


def parse_appointments_file(file: UploadedFile) -> List[Appointment]:
    """Parse the "Appointments" sheet of an Appointments Report."""
    return _parse_file(file, SourceType.APPOINTMENTS, parse_appointment_rows)


FILE_PARSERS: Mapping[SourceType, Callable[[UploadedFile], list]] = MappingProxyType({
    SourceType.OPPORTUNITIES: parse_opportunities_file,
    SourceType.LINE_ITEMS: parse_line_items_file,
    SourceType.JOB_TIMES: parse_job_times_file,
    SourceType.APPOINTMENTS: parse_appointments_file,
})


# =============================================================================
# MODULE EXPORTS
# =============================================================================

__all__ = [
    # Errors
    'FileParseError',
    # Constants
    'OPPORTUNITIES_REQUIRED_COLUMNS',
    'LINE_ITEMS_REQUIRED_COLUMNS',
    'JOB_TIMES_REQUIRED_COLUMNS',
    'APPOINTMENTS_REQUIRED_COLUMNS',
    'FILE_VALIDATION_REQUIREMENTS',
    'FILE_PARSERS',
    # Workbook decoding
    'load_sheet',
    'read_sheet_rows',
    # Row parsers
    'parse_opportunity_rows',
    'parse_line_item_rows',
    'parse_job_time_rows',
    'parse_appointment_rows',
    # File parsers
    'parse_opportunities_file',
    'parse_line_items_file',
    'parse_job_times_file',
    'parse_appointments_file',
]
