"""
Cross-Source Integrator

Builds an IntegratedDataset from the four report uploads:

1. Fan-out: each present file is parsed in its own worker thread
   (asyncio.to_thread); a missing file contributes an empty collection.
2. Join barrier: asyncio.gather waits for all four parses. If any parse
   fails the whole integration fails with IntegrationError; no partial
   dataset is returned.
3. Each collection is cleaned independently.
4. technician_names and job_ids are computed as sorted distinct unions
   across all four cleaned collections.

The parses share no mutable state, so no locking is needed. A dataset is
rebuilt from scratch on every call; callers discard results of superseded
runs.
"""

import asyncio
import logging
from datetime import date, datetime
from typing import Iterable, List, Optional

from field_kpis.models import (
    Appointment,
    DataSummary,
    DateRange,
    IntegratedDataset,
    JobTime,
    LineItem,
    Opportunity,
    SourceType,
    UploadedFile,
    UploadedFiles,
)
from field_kpis.services.cleaning import (
    clean_appointments,
    clean_job_times,
    clean_line_items,
    clean_opportunities,
)
from field_kpis.services.parsers import FILE_PARSERS

logger = logging.getLogger(__name__)


class IntegrationError(RuntimeError):
    """One of the uploads could not be parsed; the integration was abandoned."""

    def __init__(self, source_type: SourceType, message: str):
        self.source_type = source_type
        super().__init__(f"Failed to process {source_type.value} file: {message}")


# =============================================================================
# PARSING
# =============================================================================

async def _parse_source(source_type: SourceType, file: Optional[UploadedFile]) -> list:
    if file is None:
        logger.info(f"No {source_type.value} file provided; using an empty collection")
        return []

    try:
        return await asyncio.to_thread(FILE_PARSERS[source_type], file)
    except Exception as e:
        raise IntegrationError(source_type, str(e)) from e


# =============================================================================
# IDENTITY SETS
# =============================================================================

def extract_technician_names(
    opportunities: Iterable[Opportunity],
    line_items: Iterable[LineItem],
    job_times: Iterable[JobTime],
    appointments: Iterable[Appointment],
) -> List[str]:
    """Sorted distinct technician names across the four collections."""
    names = set()
    for collection in (opportunities, line_items, job_times, appointments):
        names.update(record.technician for record in collection)
    return sorted(names)


def extract_job_ids(
    opportunities: Iterable[Opportunity],
    line_items: Iterable[LineItem],
    job_times: Iterable[JobTime],
    appointments: Iterable[Appointment],
) -> List[str]:
    """Sorted distinct job identifiers across the four collections."""
    ids = set()
    for collection in (opportunities, line_items, job_times, appointments):
        ids.update(record.job_id for record in collection)
    return sorted(ids)


# =============================================================================
# MAIN INTEGRATION ENTRY POINT
# =============================================================================

async def process_and_integrate_files(files: UploadedFiles) -> IntegratedDataset:
    """
    Parse, clean and integrate the four report uploads.

    Args:
        files: The uploads; any of them may be None

    Returns:
        IntegratedDataset with cleaned collections and identity sets

    Raises:
        IntegrationError: If any present file fails to parse
    """
    source_types = list(SourceType)
    results = await asyncio.gather(
        *(_parse_source(source_type, files.get(source_type)) for source_type in source_types)
    )
    parsed = dict(zip(source_types, results))

    opportunities = clean_opportunities(parsed[SourceType.OPPORTUNITIES])
    line_items = clean_line_items(parsed[SourceType.LINE_ITEMS])
    job_times = clean_job_times(parsed[SourceType.JOB_TIMES])
    appointments = clean_appointments(parsed[SourceType.APPOINTMENTS])

    dataset = IntegratedDataset(
        opportunities=opportunities,
        line_items=line_items,
        job_times=job_times,
        appointments=appointments,
        technician_names=extract_technician_names(
            opportunities, line_items, job_times, appointments
        ),
        job_ids=extract_job_ids(opportunities, line_items, job_times, appointments),
    )

    logger.info(
        f"Integrated {len(opportunities)} opportunities, {len(line_items)} line items, "
        f"{len(job_times)} job times and {len(appointments)} appointments "
        f"for {len(dataset.technician_names)} technicians"
    )
    return dataset


# =============================================================================
# SUMMARY
# =============================================================================

def _as_date(value: Optional[date]) -> Optional[date]:
    if isinstance(value, datetime):
        return value.date()
    return value


def get_data_summary(dataset: IntegratedDataset) -> DataSummary:
    """
    Summarize an IntegratedDataset.

    The date range spans all four primary date fields; appointments
    contribute the calendar date of their scheduled time.
    """
    all_dates = [
        d for d in (
            [_as_date(opp.date) for opp in dataset.opportunities]
            + [_as_date(item.invoice_date) for item in dataset.line_items]
            + [_as_date(job.first_appointment) for job in dataset.job_times]
            + [_as_date(appt.scheduled_for) for appt in dataset.appointments]
        )
        if d is not None
    ]

    date_range = DateRange(start=min(all_dates), end=max(all_dates)) if all_dates else DateRange()

    return DataSummary(
        total_opportunities=len(dataset.opportunities),
        total_line_items=len(dataset.line_items),
        total_job_times=len(dataset.job_times),
        total_appointments=len(dataset.appointments),
        unique_technicians=len(dataset.technician_names),
        unique_jobs=len(dataset.job_ids),
        date_range=date_range,
    )


__all__ = [
    'IntegrationError',
    'extract_technician_names',
    'extract_job_ids',
    'process_and_integrate_files',
    'get_data_summary',
]
