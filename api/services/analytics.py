"""
Pipeline statistics.

summarize and conversion_rates are pure functions over (stage, is_processed)
pairs so the same numbers back the overview, the per-job view, the
per-recruiter view and the staff job list.
"""

from collections import Counter
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, Iterable, Optional, Tuple
import logging

from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from core.exceptions import NotFoundError
from core.utils.datetime import start_of_month
from database.models.applications import Application, Stage
from database.models.candidates import Candidate
from database.models.jobs import Job, JobStatus
from database.models.users import User

logger = logging.getLogger(__name__)

RATE_PRECISION = 4


@dataclass
class PipelineStats:
    """Counts over a set of applications."""

    total: int = 0
    unprocessed: int = 0
    processed: int = 0
    hired: int = 0
    rejected: int = 0
    stage_counts: Dict[str, int] = field(default_factory=dict)  # non-zero stages only

    def count(self, stage: Stage) -> int:
        return self.stage_counts.get(stage.value, 0)


@dataclass
class ConversionRates:
    """Funnel ratios. None means the denominator was zero, not a 0% rate."""

    interview_rate: Optional[float] = None
    submission_rate: Optional[float] = None
    offer_rate: Optional[float] = None
    hire_rate: Optional[float] = None


def summarize(rows: Iterable[Tuple[Any, bool]]) -> PipelineStats:
    """
    Aggregate (stage, is_processed) pairs.

    Args:
        rows: Stage (enum or value) and processed flag per application

    Returns:
        PipelineStats whose stage_counts sum to total
    """
    stage_counter: Counter = Counter()
    processed = 0
    total = 0
    for stage, is_processed in rows:
        total += 1
        stage_counter[Stage(stage).value] += 1
        if is_processed:
            processed += 1

    stats = PipelineStats(
        total=total,
        unprocessed=total - processed,
        processed=processed,
        stage_counts={
            stage.value: stage_counter[stage.value]
            for stage in Stage
            if stage_counter[stage.value]
        },
    )
    stats.hired = stats.count(Stage.HIRED)
    stats.rejected = stats.count(Stage.REJECTED)
    return stats


def _ratio(numerator: int, denominator: int) -> Optional[float]:
    if denominator == 0:
        return None
    return round(numerator / denominator, RATE_PRECISION)


def conversion_rates(stats: PipelineStats) -> ConversionRates:
    """
    Funnel conversion derived from current stage counts.

    interview: (interview_scheduled + interview_completed) / total
    submission: client_submitted / interview sum
    offer: (offer_awaiting + offer_released) / client_submitted
    hire: hired / total
    """
    interviews = stats.count(Stage.INTERVIEW_SCHEDULED) + stats.count(Stage.INTERVIEW_COMPLETED)
    submitted = stats.count(Stage.CLIENT_SUBMITTED)
    offers = stats.count(Stage.OFFER_AWAITING) + stats.count(Stage.OFFER_RELEASED)

    return ConversionRates(
        interview_rate=_ratio(interviews, stats.total),
        submission_rate=_ratio(submitted, interviews),
        offer_rate=_ratio(offers, submitted),
        hire_rate=_ratio(stats.hired, stats.total),
    )


async def _stats_for(session: AsyncSession, *criteria) -> PipelineStats:
    result = await session.execute(
        select(Application.stage, Application.is_processed).where(*criteria)
    )
    return summarize(result.all())


async def stats_by_job(session: AsyncSession, job_ids: Iterable[int]) -> Dict[int, PipelineStats]:
    """Stats for several jobs in one query. Jobs without applications get empty stats."""
    job_ids = list(job_ids)
    grouped: Dict[int, list] = {job_id: [] for job_id in job_ids}
    if job_ids:
        result = await session.execute(
            select(Application.job_id, Application.stage, Application.is_processed).where(
                Application.job_id.in_(job_ids)
            )
        )
        for job_id, stage, is_processed in result.all():
            grouped[job_id].append((stage, is_processed))
    return {job_id: summarize(rows) for job_id, rows in grouped.items()}


async def overview(session: AsyncSession, now: Optional[datetime] = None) -> Dict[str, Any]:
    """
    Global dashboard numbers.

    Args:
        session: Database session
        now: Reference time for the "this month" window (defaults to current UTC time)
    """
    stats = await _stats_for(session)

    job_counts_result = await session.execute(
        select(Job.status, func.count(Job.id)).group_by(Job.status)
    )
    job_counts = {status: count for status, count in job_counts_result.all()}

    total_candidates = await session.scalar(select(func.count(Candidate.id))) or 0

    this_month = await session.scalar(
        select(func.count(Application.id)).where(Application.applied_at >= start_of_month(now))
    ) or 0

    return {
        "total_jobs": sum(job_counts.values()),
        "open_jobs": job_counts.get(JobStatus.OPEN, 0),
        "on_hold_jobs": job_counts.get(JobStatus.ON_HOLD, 0),
        "closed_jobs": job_counts.get(JobStatus.CLOSED, 0),
        "total_candidates": total_candidates,
        "total_applications": stats.total,
        "this_month": this_month,
        "stats": stats,
        "conversion_rates": conversion_rates(stats),
    }


async def job_breakdown(session: AsyncSession, job_id: int) -> Dict[str, Any]:
    """
    Stats for one job, cross-tabulated by candidate visa status and state.

    Raises:
        NotFoundError: Job does not exist
    """
    job = await session.get(Job, job_id)
    if job is None:
        raise NotFoundError(f"Job {job_id} not found")

    result = await session.execute(
        select(
            Application.stage,
            Application.is_processed,
            Candidate.visa_status,
            Candidate.location_state,
        )
        .join(Candidate, Application.candidate_id == Candidate.id)
        .where(Application.job_id == job_id)
    )
    rows = result.all()

    visa_counts: Counter = Counter()
    location_counts: Counter = Counter()
    for _, _, visa_status, location_state in rows:
        if visa_status is not None:
            visa_counts[visa_status.value] += 1
        if location_state:
            location_counts[location_state] += 1

    stats = summarize((stage, is_processed) for stage, is_processed, _, _ in rows)
    return {
        "job": job,
        "stats": stats,
        "conversion_rates": conversion_rates(stats),
        "visa_counts": dict(visa_counts),
        "location_counts": dict(location_counts),
    }


async def recruiter_breakdown(session: AsyncSession, recruiter_id: int) -> Dict[str, Any]:
    """
    Stats over the applications assigned to one recruiter.

    Raises:
        NotFoundError: User does not exist
    """
    recruiter = await session.get(User, recruiter_id)
    if recruiter is None:
        raise NotFoundError(f"Recruiter {recruiter_id} not found")

    stats = await _stats_for(session, Application.assigned_recruiter_id == recruiter_id)
    return {
        "recruiter": recruiter,
        "stats": stats,
        "conversion_rates": conversion_rates(stats),
    }
