"""
Tests for the pipeline statistics functions and the overview window.
"""

from datetime import datetime, timezone

import pytest

from api.services.analytics import PipelineStats, conversion_rates, overview, summarize
from database.models.applications import Stage


class TestSummarize:

    def test_empty(self):
        stats = summarize([])

        assert stats == PipelineStats()
        assert stats.stage_counts == {}

    def test_counts(self):
        rows = [
            (Stage.RESUME_RECEIVED, False),
            (Stage.RESUME_RECEIVED, False),
            (Stage.SCREENED, True),
            (Stage.HIRED, True),
            (Stage.REJECTED, True),
        ]
        stats = summarize(rows)

        assert stats.total == 5
        assert stats.unprocessed == 2
        assert stats.processed == 3
        assert stats.hired == 1
        assert stats.rejected == 1
        assert stats.stage_counts == {
            "resume_received": 2,
            "screened": 1,
            "rejected": 1,
            "hired": 1,
        }

    def test_accepts_raw_stage_values(self):
        stats = summarize([("vetted", True), ("vetted", False)])

        assert stats.stage_counts == {"vetted": 2}

    def test_stage_counts_sum_to_total(self):
        rows = [(stage, i % 2 == 0) for i, stage in enumerate(Stage)] * 3
        stats = summarize(rows)

        assert sum(stats.stage_counts.values()) == stats.total == len(rows)
        assert stats.processed + stats.unprocessed == stats.total


class TestConversionRates:

    def test_no_applications_gives_nulls(self):
        rates = conversion_rates(summarize([]))

        assert rates.interview_rate is None
        assert rates.submission_rate is None
        assert rates.offer_rate is None
        assert rates.hire_rate is None

    def test_funnel(self):
        rows = (
            [(Stage.RESUME_RECEIVED, False)] * 4
            + [(Stage.INTERVIEW_SCHEDULED, True)] * 2
            + [(Stage.INTERVIEW_COMPLETED, True)]
            + [(Stage.CLIENT_SUBMITTED, True)] * 2
            + [(Stage.OFFER_RELEASED, True)]
        )
        rates = conversion_rates(summarize(rows))

        # 10 total, 3 interviewing, 2 submitted, 1 offer, 0 hired
        assert rates.interview_rate == pytest.approx(0.3)
        assert rates.submission_rate == pytest.approx(0.6667)
        assert rates.offer_rate == pytest.approx(0.5)
        assert rates.hire_rate == 0.0

    def test_zero_denominator_only_nulls_that_rate(self):
        rates = conversion_rates(summarize([(Stage.HIRED, True), (Stage.SCREENED, True)]))

        assert rates.interview_rate == 0.0
        assert rates.submission_rate is None
        assert rates.offer_rate is None
        assert rates.hire_rate == 0.5


class TestThisMonth:

    REFERENCE = datetime(2026, 10, 18, 9, 30, tzinfo=timezone.utc)

    @pytest.mark.asyncio
    @pytest.mark.parametrize("applied_at,expected", [
        (datetime(2026, 9, 30, 23, 59, 59, tzinfo=timezone.utc), 0),
        (datetime(2026, 10, 1, 0, 0, 0, tzinfo=timezone.utc), 1),
    ])
    async def test_month_starts_at_midnight_utc_on_the_first(
        self, session, application, applied_at, expected
    ):
        application.applied_at = applied_at
        await session.commit()

        data = await overview(session, now=self.REFERENCE)

        assert data["total_applications"] == 1
        assert data["this_month"] == expected
