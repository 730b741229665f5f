"""
Pytest Configuration and Shared Fixtures for the Technician KPI Tests.

This module provides fixtures and helpers for all pipeline tests:
- Async test execution with pytest-asyncio (tests opt in with
  @pytest.mark.asyncio)
- Real .xlsx workbooks written with pandas + openpyxl, so parsing and
  validation run against the same decoder used in production
- Sample typed records for the cleaning and KPI tests
- A complete four-report upload bundle for integration and job tests

Reference week used throughout: Monday 2025-06-02 to Sunday 2025-06-08.
"""

import io
from datetime import date, datetime
from typing import Dict, List, Optional

import pandas as pd
import pytest

from field_kpis.core.config import get_settings
from field_kpis.models import (
    Appointment,
    JobTime,
    LineItem,
    Opportunity,
    UploadedFile,
    UploadedFiles,
)

XLSX_MIME_TYPE = 'application/vnd.openxmlformats-officedocument.spreadsheetml.sheet'

WEEK_START = date(2025, 6, 2)
WEEK_END = date(2025, 6, 8)


# ============================================================
# PYTEST HOOKS
# ============================================================

def pytest_configure(config) -> None:
    """
    Register custom markers.

    - slow: Marks tests as slow (deselect with -m "not slow")
    """
    config.addinivalue_line(
        'markers',
        'slow: marks tests as slow (deselect with -m "not slow")'
    )


@pytest.fixture(autouse=True)
def clear_settings_cache():
    """Reset cached settings so environment overrides in one test never leak."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


# ============================================================
# WORKBOOK HELPERS
# ============================================================

def create_xlsx_bytes(sheets: Dict[str, Optional[pd.DataFrame]]) -> bytes:
    """
    Write DataFrames to an in-memory .xlsx workbook.

    Args:
        sheets: Sheet name -> DataFrame. A None value creates a completely
            empty sheet (no header row).

    Returns:
        bytes: The workbook content

    Usage:
        content = create_xlsx_bytes({'Opportunities': opportunities_df})
    """
    buffer = io.BytesIO()
    with pd.ExcelWriter(buffer, engine='openpyxl') as writer:
        for sheet_name, df in sheets.items():
            if df is None:
                writer.book.create_sheet(sheet_name)
            else:
                df.to_excel(writer, sheet_name=sheet_name, index=False)
    return buffer.getvalue()


def make_upload(
    filename: str,
    sheets: Dict[str, Optional[pd.DataFrame]],
    content_type: Optional[str] = XLSX_MIME_TYPE,
) -> UploadedFile:
    """Build an UploadedFile holding a generated workbook."""
    return UploadedFile(
        filename=filename,
        content=create_xlsx_bytes(sheets),
        content_type=content_type,
    )


# ============================================================
# SAMPLE REPORT FRAMES
# ============================================================

@pytest.fixture
def opportunities_df() -> pd.DataFrame:
    """
    Opportunities Report rows.

    Jake has one Won $1,500 opportunity in the reference week; Aaron has a
    Won and a Lost one. The last row falls in the following week and the
    row with a blank owner maps to "Unknown Technician".
    """
    return pd.DataFrame({
        'Date': ['06/02/2025', '06/03/2025', '06/04/2025', '06/10/2025', '06/05/2025'],
        'Job': ['J1001', 'J1002', 'J1003', 'J1004', 'J1005'],
        'Customer': ['Smith', 'Jones', 'Brown', 'Lee', 'Diaz'],
        'Email': ['s@example.com', '', '', '', ''],
        'Phone': ['555-0100', '', '', '', ''],
        'Status': ['Won', 'Won', 'Lost', 'Won', 'Pending'],
        'Opportunity Owner': ['Jake', 'Aaron M', 'Aaron M', 'Jake H', None],
        'Membership Opportunity': ['Yes', 'Yes', 'No', 'No', 'No'],
        'Membership Sold': ['Yes', 'No', 'No', 'No', 'No'],
        'Revenue': ['$1,500.00', '$800.00', '$0.00', '$2,000.00', '$100.00'],
    })


@pytest.fixture
def line_items_df() -> pd.DataFrame:
    return pd.DataFrame({
        'Invoice Date': ['06/02/2025', '06/03/2025', '06/04/2025', '06/04/2025'],
        'Customer': ['Smith', 'Jones', 'Jones', 'Brown'],
        'Job': ['J1001', 'J1002', 'J1002', 'J1003'],
        'Opp. Owner': ['Jake', 'Aaron', 'Aaron', 'Aaron'],
        'Category': ['Drain', 'Plumbing', 'Plumbing', 'Plumbing'],
        'Line Item': [
            'Hydro Jetting - Main Line',
            '50 Gal Water Heater Install',
            'Cast Iron Pipe Descaling',
            'Faucet repair',
        ],
        'Quantity': [1, 1, 2, 1],
        'Price': ['$650.00', '$1,800.00', '$900.00', '$150.00'],
    })


@pytest.fixture
def job_times_df() -> pd.DataFrame:
    return pd.DataFrame({
        'First Appointment': ['06/02/2025', '06/03/2025', '06/04/2025'],
        'Job': ['J1001', 'J1002', 'J1003'],
        'Job Status': ['Completed', 'Completed', 'Pending'],
        'Customer': ['Smith', 'Jones', 'Brown'],
        'Opportunity Owner': ['Jake', 'Aaron M', 'Aaron M'],
        'Opportunity': ['Won', 'Won', 'Lost'],
        'Total': ['$1,500.00', '$800.00', '$0.00'],
        'Total Time': ['4h 48m (288 mins)', '2h 0m (120 mins)', '0h 0m (0 mins)'],
        'Sold Time': ['4h 0m (240 mins)', '1h 30m (90 mins)', '0h 0m (0 mins)'],
        'Job Efficiency': ['83.3 %', '75 %', '0 %'],
    })


@pytest.fixture
def appointments_df() -> pd.DataFrame:
    return pd.DataFrame({
        'Appointment': ['A1', 'A2', 'A3'],
        'Scheduled For': ['06/02/2025 10:00 AM', '06/08/2025 11:30 PM', '06/03/2025 02:15 PM'],
        'Job': ['J1001', 'J1006', 'J1002'],
        'Customer': ['Smith', 'Ng', 'Jones'],
        'Appt Status': ['Completed', 'Cancelled', 'Completed'],
        'Technician': ['Jake Harter', 'Jake', 'Aaron McDaniel'],
        'Service Category': ['Drain', 'Drain', 'Water Heater'],
        'Revenue': ['$0.00', '$0.00', '$200.00'],
    })


# ============================================================
# UPLOAD FIXTURES
# ============================================================

@pytest.fixture
def opportunities_upload(opportunities_df: pd.DataFrame) -> UploadedFile:
    return make_upload('opportunities.xlsx', {'Opportunities': opportunities_df})


@pytest.fixture
def line_items_upload(line_items_df: pd.DataFrame) -> UploadedFile:
    return make_upload('line_items.xlsx', {'Sold Line Items': line_items_df})


@pytest.fixture
def job_times_upload(job_times_df: pd.DataFrame) -> UploadedFile:
    return make_upload('job_times.xlsx', {'Job Times': job_times_df})


@pytest.fixture
def appointments_upload(appointments_df: pd.DataFrame) -> UploadedFile:
    return make_upload('appointments.xlsx', {'Appointments': appointments_df})


@pytest.fixture
def uploaded_files(
    opportunities_upload: UploadedFile,
    line_items_upload: UploadedFile,
    job_times_upload: UploadedFile,
    appointments_upload: UploadedFile,
) -> UploadedFiles:
    """All four reports, valid and consistent with each other."""
    return UploadedFiles(
        opportunities=opportunities_upload,
        line_items=line_items_upload,
        job_times=job_times_upload,
        appointments=appointments_upload,
    )


# ============================================================
# SAMPLE RECORDS
# ============================================================

@pytest.fixture
def sample_opportunities() -> List[Opportunity]:
    return [
        Opportunity(
            date=date(2025, 6, 2), job_id='J1', status='Won',
            technician='Jake Harter', revenue=1000.0,
        ),
        Opportunity(
            date=date(2025, 6, 8), job_id='J2', status='Lost',
            technician='Jake Harter', revenue=0.0,
        ),
        Opportunity(
            date=date(2025, 6, 9), job_id='J3', status='Won',
            technician='Jake Harter', revenue=5000.0,
        ),
        Opportunity(
            date=date(2025, 6, 4), job_id='J4', status='Won',
            technician='Aaron McDaniel', revenue=400.0,
        ),
    ]


@pytest.fixture
def sample_line_items() -> List[LineItem]:
    return [
        LineItem(
            invoice_date=date(2025, 6, 3), job_id='J1', technician='Jake Harter',
            line_item='Hydro Jetting', price=500.0,
        ),
        LineItem(
            invoice_date=date(2025, 6, 3), job_id='J1', technician='Jake Harter',
            line_item='HOT WATER heater replacement', price=1200.0,
        ),
    ]


@pytest.fixture
def sample_job_times() -> List[JobTime]:
    return [
        JobTime(first_appointment=date(2025, 6, 2), job_id='J1', technician='Jake Harter', job_efficiency=0.0),
        JobTime(first_appointment=date(2025, 6, 3), job_id='J2', technician='Jake Harter', job_efficiency=50.0),
        JobTime(first_appointment=date(2025, 6, 4), job_id='J5', technician='Jake Harter', job_efficiency=100.0),
    ]


@pytest.fixture
def sample_appointments() -> List[Appointment]:
    return [
        Appointment(
            scheduled_for=datetime(2025, 6, 8, 23, 30), job_id='J6',
            appt_status='Completed', technician='Jake Harter', revenue=500.0,
        ),
        Appointment(
            scheduled_for=datetime(2025, 6, 1, 9, 0), job_id='J7',
            appt_status='Completed', technician='Colin Myers', revenue=300.0,
        ),
    ]
