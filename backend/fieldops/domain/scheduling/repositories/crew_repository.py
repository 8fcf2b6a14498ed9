"""
Crew Repository Interfaces

Defines the contracts for crew member and availability data access.
"""

from abc import ABC, abstractmethod
from collections.abc import Iterable
from datetime import datetime
from uuid import UUID

from fieldops.models import CrewAvailability, CrewMember


class CrewMemberRepository(ABC):
    """Abstract repository interface for CrewMember entities."""

    @abstractmethod
    def get(self, tenant_id: UUID, crew_member_id: UUID) -> CrewMember | None:
        pass

    @abstractmethod
    def list_members(self, tenant_id: UUID, active_only: bool = True) -> list[CrewMember]:
        """Crew members ordered by id."""
        pass

    @abstractmethod
    def list_by_ids(self, tenant_id: UUID, crew_ids: Iterable[UUID]) -> list[CrewMember]:
        pass

    @abstractmethod
    def lock(self, tenant_id: UUID, crew_ids: Iterable[UUID]) -> list[CrewMember]:
        """
        Row-lock the given crew members for the rest of the transaction.

        Locks are taken in id order. Returns the members that exist in the
        tenant, which may be fewer than requested.
        """
        pass

    @abstractmethod
    def add(self, crew_member: CrewMember) -> CrewMember:
        pass


class CrewAvailabilityRepository(ABC):
    """Abstract repository interface for declared availability windows."""

    @abstractmethod
    def list_for_crew(
        self,
        tenant_id: UUID,
        crew_ids: Iterable[UUID],
        start: datetime | None = None,
        end: datetime | None = None,
    ) -> list[CrewAvailability]:
        """Windows for the given crew, optionally only those overlapping ``[start, end)``."""
        pass

    @abstractmethod
    def add(self, window: CrewAvailability) -> CrewAvailability:
        pass
