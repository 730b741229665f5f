"""
Pipeline jobs for the technician KPI package.

- weekly_scorecard.py: validate -> integrate -> summarize -> KPIs for a week

Usage:
    from field_kpis.jobs import generate_weekly_scorecard, load_uploaded_files

    files = load_uploaded_files({"opportunities": "opportunities.xlsx", ...})
    scorecard = await generate_weekly_scorecard(files)
"""

from field_kpis.jobs.weekly_scorecard import (
    load_uploaded_files,
    resolve_default_week,
    generate_weekly_scorecard,
    generate_scorecard_content,
)

__all__ = [
    'load_uploaded_files',          # Read report files from disk
    'resolve_default_week',         # Week used when none is given
    'generate_weekly_scorecard',    # Full pipeline for one week
    'generate_scorecard_content',   # Plain-text rendering of a scorecard
]
