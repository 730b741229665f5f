"""
Record Validator/Cleaner

Per-source filters that drop structurally invalid or implausible records:
- Opportunity: job, technician and date present; revenue >= 0
- LineItem: job, technician and invoice date present; quantity > 0; price >= 0
- JobTime: job, technician and first appointment present; efficiency in [0, 100]
- Appointment: job, technician and scheduled time present; revenue >= 0

Rejected records are dropped without raising: spreadsheet exports routinely
end with incomplete rows. Dates that failed to parse are None and are
rejected like any other missing identity field.
"""

import logging
from typing import Callable, Iterable, List, TypeVar

from field_kpis.models import Appointment, JobTime, LineItem, Opportunity

logger = logging.getLogger(__name__)

T = TypeVar('T')

MIN_JOB_EFFICIENCY: float = 0.0
MAX_JOB_EFFICIENCY: float = 100.0


# =============================================================================
# RECORD PREDICATES
# =============================================================================

def is_valid_opportunity(opportunity: Opportunity) -> bool:
    if not opportunity.job_id or not opportunity.technician or opportunity.date is None:
        return False
    return opportunity.revenue >= 0


def is_valid_line_item(item: LineItem) -> bool:
    if not item.job_id or not item.technician or item.invoice_date is None:
        return False
    if item.price < 0:
        return False
    return item.quantity > 0


def is_valid_job_time(job: JobTime) -> bool:
    if not job.job_id or not job.technician or job.first_appointment is None:
        return False
    return MIN_JOB_EFFICIENCY <= job.job_efficiency <= MAX_JOB_EFFICIENCY


def is_valid_appointment(appointment: Appointment) -> bool:
    if not appointment.job_id or not appointment.technician or appointment.scheduled_for is None:
        return False
    return appointment.revenue >= 0


# =============================================================================
# COLLECTION CLEANERS
# =============================================================================

def _clean(records: Iterable[T], predicate: Callable[[T], bool], label: str) -> List[T]:
    records = list(records)
    kept = [record for record in records if predicate(record)]
    dropped = len(records) - len(kept)
    if dropped:
        logger.debug(f"Dropped {dropped} of {len(records)} invalid {label} records")
    return kept


def clean_opportunities(opportunities: Iterable[Opportunity]) -> List[Opportunity]:
    """Keep opportunities with identity fields and non-negative revenue."""
    return _clean(opportunities, is_valid_opportunity, 'opportunity')


def clean_line_items(line_items: Iterable[LineItem]) -> List[LineItem]:
    """Keep line items with identity fields, positive quantity and non-negative price."""
    return _clean(line_items, is_valid_line_item, 'line item')


def clean_job_times(job_times: Iterable[JobTime]) -> List[JobTime]:
    """Keep job times with identity fields and an efficiency within 0-100%."""
    return _clean(job_times, is_valid_job_time, 'job time')


def clean_appointments(appointments: Iterable[Appointment]) -> List[Appointment]:
    """Keep appointments with identity fields and non-negative revenue."""
    return _clean(appointments, is_valid_appointment, 'appointment')


__all__ = [
    'is_valid_opportunity',
    'is_valid_line_item',
    'is_valid_job_time',
    'is_valid_appointment',
    'clean_opportunities',
    'clean_line_items',
    'clean_job_times',
    'clean_appointments',
]
