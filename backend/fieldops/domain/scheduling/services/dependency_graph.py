"""
Dependency Graph

The "must complete before" relation between jobs of a tenant. The graph is
kept acyclic: an edge is refused when its prerequisite can already reach its
dependent.
"""

from collections import defaultdict, deque
from uuid import UUID

from fieldops.domain.scheduling.repositories import JobDependencyRepository, JobRepository
from fieldops.domain.scheduling.value_objects import DependencyType, JobStatus
from fieldops.domain.shared.base import DomainService
from fieldops.domain.shared.exceptions import (
    CyclicDependencyError,
    JobNotFoundError,
    ValidationError,
)
from fieldops.models import Job, JobDependency


class DependencyGraph(DomainService):
    def __init__(self, jobs: JobRepository, dependencies: JobDependencyRepository) -> None:
        self._jobs = jobs
        self._dependencies = dependencies

    def add_dependency(
        self,
        tenant_id: UUID,
        dependent_job_id: UUID,
        prerequisite_job_id: UUID,
        dependency_type: DependencyType = DependencyType.SEQUENTIAL,
        description: str | None = None,
    ) -> JobDependency:
        """
        Record that ``dependent_job_id`` waits for ``prerequisite_job_id``.

        Raises:
            JobNotFoundError: If either job does not exist in the tenant
            CyclicDependencyError: If the edge would close a cycle, including a
                self-edge
            ValidationError: If the edge already exists
        """
        for job_id in (dependent_job_id, prerequisite_job_id):
            if self._jobs.get(tenant_id, job_id) is None:
                raise JobNotFoundError(job_id)

        if dependent_job_id == prerequisite_job_id:
            raise CyclicDependencyError(dependent_job_id, prerequisite_job_id)

        edges = self._dependencies.list_all(tenant_id)
        if any(
            e.dependent_job_id == dependent_job_id
            and e.prerequisite_job_id == prerequisite_job_id
            for e in edges
        ):
            raise ValidationError(
                "prerequisite_job_id",
                prerequisite_job_id,
                "dependency already exists",
            )

        if self._reaches(edges, prerequisite_job_id, dependent_job_id):
            raise CyclicDependencyError(dependent_job_id, prerequisite_job_id)

        return self._dependencies.add(
            JobDependency(
                tenant_id=tenant_id,
                dependent_job_id=dependent_job_id,
                prerequisite_job_id=prerequisite_job_id,
                dependency_type=dependency_type,
                description=description,
            )
        )

    @staticmethod
    def _reaches(edges: list[JobDependency], source: UUID, target: UUID) -> bool:
        """Breadth-first search along dependent -> prerequisite edges."""
        prerequisites: dict[UUID, list[UUID]] = defaultdict(list)
        for edge in edges:
            prerequisites[edge.dependent_job_id].append(edge.prerequisite_job_id)

        seen = {source}
        queue = deque([source])
        while queue:
            node = queue.popleft()
            if node == target:
                return True
            for nxt in prerequisites[node]:
                if nxt not in seen:
                    seen.add(nxt)
                    queue.append(nxt)
        return False

    def blocking_prerequisites(self, tenant_id: UUID, job_id: UUID) -> list[Job]:
        """Direct prerequisites of ``job_id`` that are not yet completed."""
        edges = self._dependencies.list_for_dependent(tenant_id, job_id)
        if not edges:
            return []
        prerequisites = self._jobs.list_by_ids(
            tenant_id, [e.prerequisite_job_id for e in edges]
        )
        return [j for j in prerequisites if j.status != JobStatus.COMPLETED]

    def can_schedule(self, tenant_id: UUID, job_id: UUID) -> bool:
        return not self.blocking_prerequisites(tenant_id, job_id)
