"""
Schedule Optimizer

Greedy, deterministic assignment of unscheduled jobs to crew members and time
slots. Jobs are taken in priority order; each gets the first qualified crew
member (by ascending id) with a free slot of the job's estimated duration.
Proposals are reserved in the availability index so later jobs see them, but
nothing is persisted here.
"""

import threading
import time
from collections.abc import Callable, Iterable
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum
from typing import Any
from uuid import UUID

from fieldops.core.observability import OPTIMIZER_DURATION, OPTIMIZER_RUNS, get_logger
from fieldops.domain.shared.base import DomainService
from fieldops.models import CrewMember, Job

from .availability_index import AvailabilityIndex

logger = get_logger(__name__)


class UnassignableReason(str, Enum):
    NO_QUALIFIED_CREW = "no_qualified_crew"
    DEPENDENCIES_PENDING = "dependencies_pending"
    NO_AVAILABLE_SLOT = "no_available_slot"


@dataclass(frozen=True)
class ProposedAssignment:
    job_id: UUID
    crew_member_id: UUID
    start: datetime
    end: datetime

    def to_dict(self) -> dict[str, Any]:
        return {
            "job_id": str(self.job_id),
            "crew_member_id": str(self.crew_member_id),
            "start": self.start.isoformat(),
            "end": self.end.isoformat(),
        }


@dataclass(frozen=True)
class UnassignableJob:
    job_id: UUID
    reason: UnassignableReason

    def to_dict(self) -> dict[str, Any]:
        return {"job_id": str(self.job_id), "reason": self.reason.value}


@dataclass
class OptimizationResult:
    assignments: list[ProposedAssignment] = field(default_factory=list)
    unassignable: list[UnassignableJob] = field(default_factory=list)
    cancelled: bool = False
    jobs_considered: int = 0
    duration_seconds: float = 0.0

    def reason_for(self, job_id: UUID) -> UnassignableReason | None:
        for item in self.unassignable:
            if item.job_id == job_id:
                return item.reason
        return None


def priority_order(jobs: Iterable[Job]) -> list[Job]:
    """Emergency first, then urgent, high, normal, low; ties by creation time then id."""
    return sorted(
        jobs,
        key=lambda j: (-j.priority.numeric_value, j.created_at, j.id),
    )


def is_qualified(crew_member: CrewMember, job: Job) -> bool:
    return set(job.required_skills or []).issubset(crew_member.skills or [])


class ScheduleOptimizer(DomainService):
    """Greedy slot assignment over an availability index."""

    def __init__(self, clock: Callable[[], float] = time.monotonic) -> None:
        self._clock = clock

    def optimize(
        self,
        jobs: Iterable[Job],
        crew: Iterable[CrewMember],
        index: AvailabilityIndex,
        window_start: datetime,
        window_end: datetime,
        blocked_job_ids: Iterable[UUID] = (),
        cancel_event: threading.Event | None = None,
        time_budget_seconds: float | None = None,
    ) -> OptimizationResult:
        """
        Propose assignments for ``jobs`` inside ``[window_start, window_end)``.

        Args:
            jobs: Unscheduled jobs, in any order
            crew: Candidate crew members; inactive members are ignored
            index: Calendar of existing commitments; mutated with reservations
            window_start: Planning window start
            window_end: Planning window end
            blocked_job_ids: Jobs with incomplete prerequisites
            cancel_event: Set by the caller to stop the run between jobs
            time_budget_seconds: Deadline for the run, checked between jobs

        Returns:
            Proposals made so far, unassignable jobs with reasons and whether
            the run stopped early
        """
        started = self._clock()
        deadline = started + time_budget_seconds if time_budget_seconds else None
        blocked = set(blocked_job_ids)
        pool = sorted((c for c in crew if c.is_active), key=lambda c: c.id)
        result = OptimizationResult()

        for job in priority_order(jobs):
            if (cancel_event is not None and cancel_event.is_set()) or (
                deadline is not None and self._clock() >= deadline
            ):
                result.cancelled = True
                break

            result.jobs_considered += 1
            qualified = [c for c in pool if is_qualified(c, job)]
            if not qualified:
                result.unassignable.append(
                    UnassignableJob(job.id, UnassignableReason.NO_QUALIFIED_CREW)
                )
                continue
            if job.id in blocked:
                result.unassignable.append(
                    UnassignableJob(job.id, UnassignableReason.DEPENDENCIES_PENDING)
                )
                continue

            assignment = self._place(job, qualified, index, window_start, window_end)
            if assignment is None:
                result.unassignable.append(
                    UnassignableJob(job.id, UnassignableReason.NO_AVAILABLE_SLOT)
                )
                continue

            index.reserve(assignment.crew_member_id, assignment.start, assignment.end)
            result.assignments.append(assignment)

        result.duration_seconds = self._clock() - started
        OPTIMIZER_RUNS.labels(outcome="cancelled" if result.cancelled else "completed").inc()
        OPTIMIZER_DURATION.observe(result.duration_seconds)
        logger.info(
            "Optimization run finished",
            jobs_considered=result.jobs_considered,
            assigned=len(result.assignments),
            unassignable=len(result.unassignable),
            cancelled=result.cancelled,
            duration_seconds=result.duration_seconds,
        )
        return result

    @staticmethod
    def _place(
        job: Job,
        qualified: list[CrewMember],
        index: AvailabilityIndex,
        window_start: datetime,
        window_end: datetime,
    ) -> ProposedAssignment | None:
        duration = timedelta(minutes=job.estimated_duration_minutes)
        for member in qualified:
            slot = index.earliest_slot(
                member.id,
                duration,
                window_start,
                window_end,
                working_hours=member.parsed_working_hours(),
                max_minutes_per_day=member.max_hours_per_day * 60,
            )
            if slot is not None:
                return ProposedAssignment(job.id, member.id, slot.start_time, slot.end_time)
        return None
