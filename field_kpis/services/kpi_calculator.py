"""
KPI Engine Service

Computes the eight weekly KPIs per technician from an integrated dataset:

| KPI                     | Formula                                                          |
|-------------------------|------------------------------------------------------------------|
| average_ticket_value    | total revenue / (won opportunities + completed appointments)     |
| job_close_rate          | 100 * won opportunities / opportunities                          |
| weekly_revenue          | opportunity revenue + appointment revenue                        |
| job_efficiency          | mean efficiency over job times with efficiency > 0               |
| membership_win_rate     | 100 * memberships sold / membership opportunities                |
| hydro_jetting_jobs_sold | line items matching the hydro-jetting keywords                   |
| descaling_jobs_sold     | line items matching the descaling keywords                       |
| water_heater_jobs_sold  | line items matching the water-heater keywords                    |

Every ratio is 0 when its denominator is 0; no division by zero reaches the
caller.

Records are attributed to a technician by exact name equality after
normalization, and to a week by the calendar date of their primary date
field (closed interval on both ends).

Display support:
- KPI_THRESHOLDS: good/warning threshold pair per KPI
- get_kpi_tier: success / warning / danger / neutral tier for a value
- build_kpi_metrics: KPI values paired with display metadata and tier
- calculate_performance_score: 0-100 score averaging normalized KPIs
"""

import logging
import math
from types import MappingProxyType
from typing import Dict, Iterable, List, Mapping, Sequence

from field_kpis.models import (
    Appointment,
    AppointmentStatus,
    JobTime,
    KPIDefinition,
    KPIMetric,
    KPIName,
    KPIThreshold,
    KPITier,
    KPIUnit,
    LineItem,
    Opportunity,
    OpportunityStatus,
    TechnicianKPIs,
)
from field_kpis.services.normalization import (
    contains_service_keywords,
    get_descaling_keywords,
    get_hydro_jetting_keywords,
    get_water_heater_keywords,
)
from field_kpis.services.weeks import DateLike, is_date_in_week_range, to_calendar_date

logger = logging.getLogger(__name__)


# =============================================================================
# CONSTANTS - Display thresholds and metadata
# =============================================================================

KPI_THRESHOLDS: Mapping[KPIName, KPIThreshold] = MappingProxyType({
    KPIName.AVERAGE_TICKET_VALUE: KPIThreshold(good=1000, warning=500),
    KPIName.JOB_CLOSE_RATE: KPIThreshold(good=80, warning=60),
    KPIName.WEEKLY_REVENUE: KPIThreshold(good=5000, warning=2500),
    KPIName.JOB_EFFICIENCY: KPIThreshold(good=75, warning=50),
    KPIName.MEMBERSHIP_WIN_RATE: KPIThreshold(good=50, warning=25),
    KPIName.HYDRO_JETTING_JOBS_SOLD: KPIThreshold(good=3, warning=1),
    KPIName.DESCALING_JOBS_SOLD: KPIThreshold(good=2, warning=1),
    KPIName.WATER_HEATER_JOBS_SOLD: KPIThreshold(good=2, warning=1),
})

KPI_DEFINITIONS: Mapping[KPIName, KPIDefinition] = MappingProxyType({
    KPIName.AVERAGE_TICKET_VALUE: KPIDefinition(
        name='Average Ticket Value',
        unit=KPIUnit.CURRENCY,
        description='Total revenue divided by number of completed jobs',
    ),
    KPIName.JOB_CLOSE_RATE: KPIDefinition(
        name='Job Close Rate',
        unit=KPIUnit.PERCENT,
        description='Percentage of opportunities that resulted in won jobs',
    ),
    KPIName.WEEKLY_REVENUE: KPIDefinition(
        name='Weekly Revenue',
        unit=KPIUnit.CURRENCY,
        description='Total revenue generated in the selected week',
    ),
    KPIName.JOB_EFFICIENCY: KPIDefinition(
        name='Job Efficiency',
        unit=KPIUnit.PERCENT,
        description='Average efficiency percentage across all jobs',
    ),
    KPIName.MEMBERSHIP_WIN_RATE: KPIDefinition(
        name='Membership Win Rate',
        unit=KPIUnit.PERCENT,
        description='Percentage of membership opportunities that were sold',
    ),
    KPIName.HYDRO_JETTING_JOBS_SOLD: KPIDefinition(
        name='Hydro Jetting Jobs',
        unit=KPIUnit.COUNT,
        description='Number of hydro jetting services sold',
    ),
    KPIName.DESCALING_JOBS_SOLD: KPIDefinition(
        name='Descaling Jobs',
        unit=KPIUnit.COUNT,
        description='Number of descaling services sold',
    ),
    KPIName.WATER_HEATER_JOBS_SOLD: KPIDefinition(
        name='Water Heater Jobs',
        unit=KPIUnit.COUNT,
        description='Number of water heater services sold',
    ),
})

# Value treated as a perfect 100 when computing the performance score
PERFORMANCE_SCORE_MAXIMA: Mapping[KPIName, float] = MappingProxyType({
    KPIName.AVERAGE_TICKET_VALUE: 2000,
    KPIName.JOB_CLOSE_RATE: 100,
    KPIName.WEEKLY_REVENUE: 10000,
    KPIName.JOB_EFFICIENCY: 100,
    KPIName.MEMBERSHIP_WIN_RATE: 100,
    KPIName.HYDRO_JETTING_JOBS_SOLD: 10,
    KPIName.DESCALING_JOBS_SOLD: 5,
    KPIName.WATER_HEATER_JOBS_SOLD: 5,
})

PERFORMANCE_LABEL_EXCELLENT: str = 'Excellent'
PERFORMANCE_LABEL_GOOD: str = 'Good'
PERFORMANCE_LABEL_NEEDS_IMPROVEMENT: str = 'Needs Improvement'


# =============================================================================
# WEEK FILTERING
# =============================================================================

def filter_by_technician_and_week(
    opportunities: Iterable[Opportunity],
    line_items: Iterable[LineItem],
    job_times: Iterable[JobTime],
    appointments: Iterable[Appointment],
    technician: str,
    week_start: DateLike,
    week_end: DateLike,
) -> Dict[str, list]:
    """
    Restrict the four collections to one technician and one closed date window.

    Returns:
        Dict with keys opportunities, line_items, job_times, appointments
    """
    start = to_calendar_date(week_start)
    end = to_calendar_date(week_end)

    return {
        'opportunities': [
            opp for opp in opportunities
            if opp.technician == technician and is_date_in_week_range(opp.date, start, end)
        ],
        'line_items': [
            item for item in line_items
            if item.technician == technician and is_date_in_week_range(item.invoice_date, start, end)
        ],
        'job_times': [
            job for job in job_times
            if job.technician == technician and is_date_in_week_range(job.first_appointment, start, end)
        ],
        'appointments': [
            appt for appt in appointments
            if appt.technician == technician and is_date_in_week_range(appt.scheduled_for, start, end)
        ],
    }


# =============================================================================
# INDIVIDUAL KPI CALCULATIONS
# =============================================================================

def calculate_weekly_revenue(
    opportunities: Sequence[Opportunity],
    appointments: Sequence[Appointment],
) -> float:
    opportunity_revenue = sum(opp.revenue for opp in opportunities)
    appointment_revenue = sum(appt.revenue for appt in appointments)
    return float(opportunity_revenue + appointment_revenue)


def calculate_average_ticket_value(
    opportunities: Sequence[Opportunity],
    appointments: Sequence[Appointment],
) -> float:
    """
    Total revenue divided by completed jobs.

    Completed jobs are Won opportunities plus Completed appointments; revenue
    from every opportunity and appointment in the window counts toward the
    numerator.
    """
    won = sum(1 for opp in opportunities if opp.status == OpportunityStatus.WON.value)
    completed = sum(
        1 for appt in appointments if appt.appt_status == AppointmentStatus.COMPLETED.value
    )
    completed_jobs = won + completed
    if completed_jobs == 0:
        return 0.0
    return calculate_weekly_revenue(opportunities, appointments) / completed_jobs


def calculate_job_close_rate(opportunities: Sequence[Opportunity]) -> float:
    if not opportunities:
        return 0.0
    won = sum(1 for opp in opportunities if opp.status == OpportunityStatus.WON.value)
    return won / len(opportunities) * 100


def calculate_job_efficiency(job_times: Sequence[JobTime]) -> float:
    """Mean efficiency over jobs with a positive efficiency; zeros are excluded."""
    efficiencies = [job.job_efficiency for job in job_times if job.job_efficiency > 0]
    if not efficiencies:
        return 0.0
    return sum(efficiencies) / len(efficiencies)


def calculate_membership_win_rate(opportunities: Sequence[Opportunity]) -> float:
    membership_opportunities = [opp for opp in opportunities if opp.membership_opportunity]
    if not membership_opportunities:
        return 0.0
    sold = sum(1 for opp in membership_opportunities if opp.membership_sold)
    return sold / len(membership_opportunities) * 100


def count_service_jobs(line_items: Iterable[LineItem], keywords: Iterable[str]) -> int:
    """Count line items whose description contains any of `keywords`."""
    keywords = tuple(keywords)
    return sum(1 for item in line_items if contains_service_keywords(item.line_item, keywords))


# =============================================================================
# TECHNICIAN KPIs
# =============================================================================

def calculate_technician_kpis(
    technician: str,
    opportunities: Iterable[Opportunity],
    line_items: Iterable[LineItem],
    job_times: Iterable[JobTime],
    appointments: Iterable[Appointment],
    week_start: DateLike,
    week_end: DateLike,
) -> TechnicianKPIs:
    """
    Compute the eight KPIs for one technician over a closed date window.

    Args:
        technician: Canonical technician name (exact match)
        opportunities: Cleaned opportunities (any technician, any date)
        line_items: Cleaned line items
        job_times: Cleaned job times
        appointments: Cleaned appointments
        week_start: First day of the window (inclusive)
        week_end: Last day of the window (inclusive)

    Returns:
        TechnicianKPIs; every value is 0 when its population is empty
    """
    filtered = filter_by_technician_and_week(
        opportunities, line_items, job_times, appointments,
        technician, week_start, week_end,
    )
    tech_opps = filtered['opportunities']
    tech_items = filtered['line_items']
    tech_jobs = filtered['job_times']
    tech_appts = filtered['appointments']

    return TechnicianKPIs(
        technician=technician,
        average_ticket_value=calculate_average_ticket_value(tech_opps, tech_appts),
        job_close_rate=calculate_job_close_rate(tech_opps),
        weekly_revenue=calculate_weekly_revenue(tech_opps, tech_appts),
        job_efficiency=calculate_job_efficiency(tech_jobs),
        membership_win_rate=calculate_membership_win_rate(tech_opps),
        hydro_jetting_jobs_sold=count_service_jobs(tech_items, get_hydro_jetting_keywords()),
        descaling_jobs_sold=count_service_jobs(tech_items, get_descaling_keywords()),
        water_heater_jobs_sold=count_service_jobs(tech_items, get_water_heater_keywords()),
    )


def collect_technicians(
    opportunities: Iterable[Opportunity],
    line_items: Iterable[LineItem],
    job_times: Iterable[JobTime],
    appointments: Iterable[Appointment],
) -> List[str]:
    """
    Distinct technician names in first-seen order.

    Opportunities are scanned first, then line items, job times and
    appointments. Unlike IntegratedDataset.technician_names this is not
    sorted.
    """
    seen: Dict[str, None] = {}
    for collection in (opportunities, line_items, job_times, appointments):
        for record in collection:
            seen.setdefault(record.technician, None)
    return list(seen)


def calculate_all_technician_kpis(
    opportunities: Sequence[Opportunity],
    line_items: Sequence[LineItem],
    job_times: Sequence[JobTime],
    appointments: Sequence[Appointment],
    week_start: DateLike,
    week_end: DateLike,
) -> List[TechnicianKPIs]:
    """
    Compute KPIs for every technician present in any collection.

    A technician with records only outside the window still gets an
    all-zero entry.

    Returns:
        One TechnicianKPIs per technician, in first-seen order
    """
    technicians = collect_technicians(opportunities, line_items, job_times, appointments)

    results = [
        calculate_technician_kpis(
            technician, opportunities, line_items, job_times, appointments,
            week_start, week_end,
        )
        for technician in technicians
    ]

    logger.info(
        f"Calculated KPIs for {len(results)} technicians "
        f"({to_calendar_date(week_start)} to {to_calendar_date(week_end)})"
    )
    return results


# =============================================================================
# DISPLAY HELPERS
# =============================================================================

def get_kpi_tier(value: float, threshold: KPIThreshold) -> KPITier:
    """
    Tier a KPI value against its thresholds.

    - SUCCESS: value >= good
    - WARNING: value >= warning
    - DANGER: value > 0
    - NEUTRAL: otherwise (no activity)
    """
    if value >= threshold.good:
        return KPITier.SUCCESS
    if value >= threshold.warning:
        return KPITier.WARNING
    if value > 0:
        return KPITier.DANGER
    return KPITier.NEUTRAL


def get_performance_label(value: float, threshold: KPIThreshold) -> str:
    if value >= threshold.good:
        return PERFORMANCE_LABEL_EXCELLENT
    if value >= threshold.warning:
        return PERFORMANCE_LABEL_GOOD
    return PERFORMANCE_LABEL_NEEDS_IMPROVEMENT


def build_kpi_metrics(kpis: TechnicianKPIs) -> List[KPIMetric]:
    """Pair each KPI value with its display metadata and tier, in KPIName order."""
    metrics = []
    for kpi in KPIName:
        definition = KPI_DEFINITIONS[kpi]
        value = kpis.value_of(kpi)
        metrics.append(KPIMetric(
            key=kpi,
            name=definition.name,
            value=value,
            unit=definition.unit,
            tier=get_kpi_tier(value, KPI_THRESHOLDS[kpi]),
            description=definition.description,
        ))
    return metrics


def calculate_performance_score(kpis: TechnicianKPIs) -> int:
    """
    Overall 0-100 score for a technician.

    Each KPI is scaled to 0-100 against PERFORMANCE_SCORE_MAXIMA (capped at
    100); the score is the mean of the eight scaled values, rounded half up.
    """
    normalized = [
        min(kpis.value_of(kpi) / maximum * 100, 100.0)
        for kpi, maximum in PERFORMANCE_SCORE_MAXIMA.items()
    ]
    average = sum(normalized) / len(normalized)
    return int(math.floor(average + 0.5))


__all__ = [
    # Constants
    'KPI_THRESHOLDS',
    'KPI_DEFINITIONS',
    'PERFORMANCE_SCORE_MAXIMA',
    # Filtering
    'filter_by_technician_and_week',
    'collect_technicians',
    # Individual KPIs
    'calculate_average_ticket_value',
    'calculate_job_close_rate',
    'calculate_weekly_revenue',
    'calculate_job_efficiency',
    'calculate_membership_win_rate',
    'count_service_jobs',
    # Technician KPIs
    'calculate_technician_kpis',
    'calculate_all_technician_kpis',
    # Display helpers
    'get_kpi_tier',
    'get_performance_label',
    'build_kpi_metrics',
    'calculate_performance_score',
]
