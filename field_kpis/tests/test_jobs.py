"""
Pytest test module for the weekly scorecard job.

Runs the full pipeline (validation -> integration -> summary -> KPIs) over
the sample workbooks from conftest, and checks that validation and
integration failures come back as unsuccessful scorecards instead of
exceptions.

Test Classes:
- TestLoadUploadedFiles: reading report files from disk
- TestDefaultWeek: week selection when none is given
- TestGenerateWeeklyScorecard: end-to-end runs and failure handling
- TestScorecardContent: plain-text rendering
"""

from datetime import date
from pathlib import Path
from unittest.mock import AsyncMock, patch

import pytest

from field_kpis.jobs import (
    generate_scorecard_content,
    generate_weekly_scorecard,
    load_uploaded_files,
    resolve_default_week,
)
from field_kpis.models import (
    KPIName,
    KPITier,
    SourceType,
    TechnicianKPIs,
    TechnicianScorecard,
    UploadedFiles,
    WeeklyScorecard,
)
from field_kpis.services.integrator import IntegrationError
from field_kpis.services.weeks import build_week_range
from field_kpis.tests.conftest import WEEK_END, WEEK_START


# =============================================================================
# Test Class: TestLoadUploadedFiles
# =============================================================================

class TestLoadUploadedFiles:

    def test_reads_files_by_source_type(self, tmp_path: Path, uploaded_files: UploadedFiles):
        path = tmp_path / 'opportunities.xlsx'
        path.write_bytes(uploaded_files.opportunities.content)

        files = load_uploaded_files({SourceType.OPPORTUNITIES: path, 'job_times': None})

        assert files.opportunities.filename == 'opportunities.xlsx'
        assert files.opportunities.content == uploaded_files.opportunities.content
        assert files.job_times is None
        assert files.line_items is None

    def test_string_keys_accepted(self, tmp_path: Path):
        path = tmp_path / 'appointments.xlsx'
        path.write_bytes(b'data')

        files = load_uploaded_files({'appointments': str(path)})

        assert files.appointments.size == 4

    def test_unknown_source_type_rejected(self, tmp_path: Path):
        with pytest.raises(ValueError):
            load_uploaded_files({'invoices': tmp_path / 'x.xlsx'})


# =============================================================================
# Test Class: TestDefaultWeek
# =============================================================================

class TestDefaultWeek:

    def test_previous_full_week_by_default(self):
        week = resolve_default_week(today=date(2025, 6, 11))

        assert week.start == WEEK_START
        assert week.end == WEEK_END

    def test_offset_from_environment(self, monkeypatch):
        monkeypatch.setenv('DEFAULT_WEEK_OFFSET', '0')

        week = resolve_default_week(today=date(2025, 6, 11))

        assert week.start == date(2025, 6, 9)


# =============================================================================
# Test Class: TestGenerateWeeklyScorecard
# =============================================================================

class TestGenerateWeeklyScorecard:

    @pytest.mark.asyncio
    async def test_end_to_end(self, uploaded_files: UploadedFiles):
        scorecard = await generate_weekly_scorecard(
            uploaded_files, week=build_week_range(WEEK_START),
        )

        assert scorecard.success
        assert scorecard.errors == []
        assert scorecard.summary.total_opportunities == 5
        assert [card.kpis.technician for card in scorecard.technicians] == [
            'Jake Harter', 'Aaron McDaniel', 'Unknown Technician',
        ]

        jake, aaron, unknown = (card.kpis for card in scorecard.technicians)

        assert jake.weekly_revenue == 1500.0
        assert jake.average_ticket_value == 750.0
        assert jake.job_close_rate == 100.0
        assert jake.job_efficiency == pytest.approx(83.3)
        assert jake.membership_win_rate == 100.0
        assert jake.hydro_jetting_jobs_sold == 1

        assert aaron.weekly_revenue == 1000.0
        assert aaron.average_ticket_value == 500.0
        assert aaron.job_close_rate == 50.0
        assert aaron.job_efficiency == 75.0
        assert aaron.membership_win_rate == 0.0
        assert aaron.descaling_jobs_sold == 1
        assert aaron.water_heater_jobs_sold == 1

        assert unknown.weekly_revenue == 100.0
        assert unknown.average_ticket_value == 0.0

    @pytest.mark.asyncio
    async def test_metrics_and_score_attached(self, uploaded_files: UploadedFiles):
        scorecard = await generate_weekly_scorecard(
            uploaded_files, week=build_week_range(WEEK_START),
        )
        jake = scorecard.technicians[0]

        assert len(jake.metrics) == len(KPIName)
        close_rate = next(m for m in jake.metrics if m.key == KPIName.JOB_CLOSE_RATE)
        assert close_rate.tier == KPITier.SUCCESS
        assert jake.performance_score == 43

    @pytest.mark.asyncio
    async def test_default_week_used(self, uploaded_files: UploadedFiles):
        scorecard = await generate_weekly_scorecard(uploaded_files, today=date(2025, 6, 11))

        assert scorecard.week.start == WEEK_START
        assert scorecard.week.label == 'Jun 2-8, 2025'

    @pytest.mark.asyncio
    async def test_validation_errors_block_integration(self, uploaded_files: UploadedFiles):
        files = uploaded_files.model_copy(update={'line_items': None})

        with patch(
            'field_kpis.jobs.weekly_scorecard.process_and_integrate_files',
            new_callable=AsyncMock,
        ) as mock_integrate:
            scorecard = await generate_weekly_scorecard(files, week=build_week_range(WEEK_START))

        assert not scorecard.success
        assert scorecard.errors == ['Line Items Sold Report is required']
        assert scorecard.technicians == []
        assert scorecard.summary is None
        mock_integrate.assert_not_called()

    @pytest.mark.asyncio
    async def test_integration_error_reported(self, uploaded_files: UploadedFiles):
        error = IntegrationError(SourceType.JOB_TIMES, 'boom')

        with patch(
            'field_kpis.jobs.weekly_scorecard.process_and_integrate_files',
            new_callable=AsyncMock,
            side_effect=error,
        ):
            scorecard = await generate_weekly_scorecard(
                uploaded_files, week=build_week_range(WEEK_START),
            )

        assert not scorecard.success
        assert scorecard.errors == ['Failed to process job_times file: boom']

    @pytest.mark.asyncio
    async def test_runs_are_independent(self, uploaded_files: UploadedFiles):
        week = build_week_range(WEEK_START)
        first = await generate_weekly_scorecard(uploaded_files, week=week)
        second = await generate_weekly_scorecard(uploaded_files, week=week)

        assert first == second


# =============================================================================
# Test Class: TestScorecardContent
# =============================================================================

class TestScorecardContent:

    @pytest.mark.asyncio
    async def test_renders_technicians_by_score(self, uploaded_files: UploadedFiles):
        scorecard = await generate_weekly_scorecard(
            uploaded_files, week=build_week_range(WEEK_START),
        )

        content = generate_scorecard_content(scorecard)

        assert 'Technician Scorecard - Jun 2-8, 2025' in content
        assert 'Week: 06/02/2025 - 06/08/2025' in content
        assert content.index('Jake Harter') < content.index('Unknown Technician')
        assert '$1,500.00' in content
        assert '[success]' in content
        jake_block = content[content.index('Jake Harter'):content.index('Aaron McDaniel')]
        assert 'Revenue Performance: Needs Improvement' in jake_block

    @pytest.mark.parametrize('revenue, label', [
        (5000.0, 'Excellent'),
        (2500.0, 'Good'),
        (0.0, 'Needs Improvement'),
    ])
    def test_revenue_performance_label(self, revenue, label):
        scorecard = WeeklyScorecard(
            success=True,
            week=build_week_range(WEEK_START),
            technicians=[TechnicianScorecard(
                kpis=TechnicianKPIs(technician='Jake Harter', weekly_revenue=revenue),
            )],
        )

        content = generate_scorecard_content(scorecard)

        assert f'Revenue Performance: {label}' in content

    @pytest.mark.asyncio
    async def test_renders_errors(self):
        scorecard = await generate_weekly_scorecard(
            UploadedFiles(), week=build_week_range(WEEK_START),
        )

        content = generate_scorecard_content(scorecard)

        assert 'ERRORS' in content
        assert 'Opportunities Report is required' in content
        assert 'TECHNICIANS' not in content
