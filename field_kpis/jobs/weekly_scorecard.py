"""
Weekly Technician Scorecard Job.

Runs the full upload-to-KPI pipeline for one week:

1. Validation gate - missing, mistyped, oversized or malformed uploads stop
   the run before any parsing
2. Integration - the four reports are parsed concurrently, cleaned and
   joined into an IntegratedDataset
3. Summary - record counts and overall date span
4. KPIs - the eight KPIs per technician for the selected week
5. Display - each KPI is tiered and each technician gets a 0-100
   performance score

The job keeps no state between runs: every call rebuilds the dataset from
the uploads it is given, so when uploads are replaced the caller simply
uses the result of the latest call.

Usage:
    from field_kpis.jobs.weekly_scorecard import (
        generate_weekly_scorecard,
        load_uploaded_files,
    )

    files = load_uploaded_files({
        SourceType.OPPORTUNITIES: "exports/opportunities.xlsx",
        SourceType.LINE_ITEMS: "exports/line_items.xlsx",
        SourceType.JOB_TIMES: "exports/job_times.xlsx",
        SourceType.APPOINTMENTS: "exports/appointments.xlsx",
    })

    # Defaults to the previous full Monday-Sunday week
    scorecard = await generate_weekly_scorecard(files)
    if scorecard.success:
        print(generate_scorecard_content(scorecard))
"""

import logging
from datetime import date, datetime, timedelta
from pathlib import Path
from typing import List, Mapping, Optional, Union

from field_kpis.core.config import get_settings
from field_kpis.models import (
    KPIName,
    SourceType,
    TechnicianScorecard,
    UploadedFile,
    UploadedFiles,
    WeeklyScorecard,
    WeekRange,
)
from field_kpis.services.formatting import format_kpi_value
from field_kpis.services.integrator import (
    IntegrationError,
    get_data_summary,
    process_and_integrate_files,
)
from field_kpis.services.kpi_calculator import (
    KPI_THRESHOLDS,
    build_kpi_metrics,
    calculate_all_technician_kpis,
    calculate_performance_score,
    get_performance_label,
)
from field_kpis.services.validation import validate_uploaded_files
from field_kpis.services.weeks import build_week_range, format_date_range, get_current_week

logger = logging.getLogger(__name__)

PathLike = Union[str, Path]


# =============================================================================
# Inputs
# =============================================================================

def load_uploaded_files(paths: Mapping[Union[SourceType, str], Optional[PathLike]]) -> UploadedFiles:
    """
    Read report files from disk into an UploadedFiles bundle.

    Args:
        paths: Source type (or its string value) -> file path. Missing or
            None entries leave that upload empty.

    Returns:
        UploadedFiles with each file's bytes and guessed MIME type

    Raises:
        OSError: If a given path cannot be read
    """
    uploads = {}
    for key, path in paths.items():
        if path is None:
            continue
        source_type = SourceType(key)
        uploads[source_type.value] = UploadedFile.from_path(Path(path))
    return UploadedFiles(**uploads)


def resolve_default_week(today: Optional[date] = None) -> WeekRange:
    """
    The week used when none is given.

    settings.default_week_offset weeks before the current Monday-Sunday
    week; the default offset of 1 selects the previous full week.
    """
    current = get_current_week(today)
    offset = get_settings().default_week_offset
    return build_week_range(current.start - timedelta(weeks=offset))


# =============================================================================
# Main Job Function
# =============================================================================

async def generate_weekly_scorecard(
    files: UploadedFiles,
    week: Optional[WeekRange] = None,
    today: Optional[date] = None,
) -> WeeklyScorecard:
    """
    Validate, integrate and score the uploads for one week.

    Args:
        files: The four report uploads
        week: KPI window (default: see resolve_default_week)
        today: Reference date for the default week (default: local date)

    Returns:
        WeeklyScorecard. success is False when validation fails or a file
        cannot be integrated; errors then explains why and no KPIs are
        included. Validation warnings are carried through either way.
    """
    target_week = week or resolve_default_week(today)

    validation = await validate_uploaded_files(files)
    if not validation.is_valid:
        return WeeklyScorecard(
            success=False,
            week=target_week,
            errors=validation.errors,
            warnings=validation.warnings,
        )

    try:
        dataset = await process_and_integrate_files(files)
    except IntegrationError as e:
        logger.exception(f"Integration failed for week {target_week.label}")
        return WeeklyScorecard(
            success=False,
            week=target_week,
            errors=[str(e)],
            warnings=validation.warnings,
        )

    summary = get_data_summary(dataset)

    all_kpis = calculate_all_technician_kpis(
        dataset.opportunities,
        dataset.line_items,
        dataset.job_times,
        dataset.appointments,
        target_week.start,
        target_week.end,
    )

    technicians = [
        TechnicianScorecard(
            kpis=kpis,
            metrics=build_kpi_metrics(kpis),
            performance_score=calculate_performance_score(kpis),
        )
        for kpis in all_kpis
    ]

    logger.info(
        f"Generated scorecard for {len(technicians)} technicians, week {target_week.label}"
    )

    return WeeklyScorecard(
        success=True,
        week=target_week,
        technicians=technicians,
        summary=summary,
        warnings=validation.warnings,
    )


# =============================================================================
# Report Rendering
# =============================================================================

def generate_scorecard_content(scorecard: WeeklyScorecard) -> str:
    """
    Render a WeeklyScorecard as a plain-text report.

    Sections: header with the week, data summary, one block per technician
    (score, revenue performance label and tiered KPIs), then errors and warnings when present.
    """
    lines: List[str] = []

    lines.append("=" * 70)
    lines.append(f"Technician Scorecard - {scorecard.week.label}")
    lines.append(f"Week: {format_date_range(scorecard.week.start, scorecard.week.end)}")
    lines.append("=" * 70)
    lines.append("")

    if scorecard.summary is not None:
        summary = scorecard.summary
        lines.append("DATA SUMMARY")
        lines.append("-" * 40)
        lines.append(f"Opportunities:  {summary.total_opportunities:>6}")
        lines.append(f"Line Items:     {summary.total_line_items:>6}")
        lines.append(f"Job Times:      {summary.total_job_times:>6}")
        lines.append(f"Appointments:   {summary.total_appointments:>6}")
        lines.append(f"Technicians:    {summary.unique_technicians:>6}")
        lines.append(f"Jobs:           {summary.unique_jobs:>6}")
        if summary.date_range.start and summary.date_range.end:
            lines.append(
                f"Data spans: {format_date_range(summary.date_range.start, summary.date_range.end)}"
            )
        lines.append("")

    if scorecard.technicians:
        lines.append("TECHNICIANS")
        lines.append("-" * 40)
        # Highest score first
        ranked = sorted(scorecard.technicians, key=lambda card: -card.performance_score)
        for card in ranked:
            lines.append(f"{card.kpis.technician}  (score {card.performance_score}/100)")
            revenue_label = get_performance_label(
                card.kpis.weekly_revenue, KPI_THRESHOLDS[KPIName.WEEKLY_REVENUE],
            )
            lines.append(f"  Revenue Performance: {revenue_label}")
            for metric in card.metrics:
                value = format_kpi_value(metric.key, metric.value)
                lines.append(f"  • {metric.name:<22} {value:>12}  [{metric.tier.value}]")
            lines.append("")

    if scorecard.errors:
        lines.append("ERRORS")
        lines.append("-" * 40)
        lines.extend(f"  • {error}" for error in scorecard.errors)
        lines.append("")

    if scorecard.warnings:
        lines.append("WARNINGS")
        lines.append("-" * 40)
        lines.extend(f"  • {warning}" for warning in scorecard.warnings)
        lines.append("")

    lines.append("=" * 70)
    lines.append(f"Generated: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}")
    lines.append("=" * 70)

    return "\n".join(lines)


__all__ = [
    'load_uploaded_files',
    'resolve_default_week',
    'generate_weekly_scorecard',
    'generate_scorecard_content',
]
