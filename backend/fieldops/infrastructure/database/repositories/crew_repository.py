"""Crew member and availability repository implementations."""

from collections.abc import Iterable
from datetime import datetime
from uuid import UUID

from sqlmodel import col, select

from fieldops.domain.scheduling.repositories import (
    CrewAvailabilityRepository,
    CrewMemberRepository,
)
from fieldops.models import CrewAvailability, CrewMember

from .base import BaseRepository, read_operation, write_operation


class SqlCrewMemberRepository(BaseRepository, CrewMemberRepository):
    @read_operation("get crew member")
    def get(self, tenant_id: UUID, crew_member_id: UUID) -> CrewMember | None:
        statement = select(CrewMember).where(
            CrewMember.tenant_id == tenant_id, CrewMember.id == crew_member_id
        )
        return self.session.exec(statement).first()

    @read_operation("list crew members")
    def list_members(self, tenant_id: UUID, active_only: bool = True) -> list[CrewMember]:
        statement = select(CrewMember).where(CrewMember.tenant_id == tenant_id)
        if active_only:
            statement = statement.where(col(CrewMember.is_active).is_(True))
        return list(self.session.exec(statement.order_by(col(CrewMember.id))).all())

    @read_operation("list crew members by id")
    def list_by_ids(self, tenant_id: UUID, crew_ids: Iterable[UUID]) -> list[CrewMember]:
        ids = list(set(crew_ids))
        if not ids:
            return []
        statement = (
            select(CrewMember)
            .where(CrewMember.tenant_id == tenant_id, col(CrewMember.id).in_(ids))
            .order_by(col(CrewMember.id))
        )
        return list(self.session.exec(statement).all())

    @write_operation("lock crew members")
    def lock(self, tenant_id: UUID, crew_ids: Iterable[UUID]) -> list[CrewMember]:
        ids = sorted(set(crew_ids))
        if not ids:
            return []
        statement = (
            select(CrewMember)
            .where(CrewMember.tenant_id == tenant_id, col(CrewMember.id).in_(ids))
            .order_by(col(CrewMember.id))
            .with_for_update()
        )
        return list(self.session.exec(statement).all())

    @write_operation("save crew member")
    def add(self, crew_member: CrewMember) -> CrewMember:
        return self._save(crew_member)


class SqlCrewAvailabilityRepository(BaseRepository, CrewAvailabilityRepository):
    @read_operation("list crew availability")
    def list_for_crew(
        self,
        tenant_id: UUID,
        crew_ids: Iterable[UUID],
        start: datetime | None = None,
        end: datetime | None = None,
    ) -> list[CrewAvailability]:
        ids = list(set(crew_ids))
        if not ids:
            return []
        statement = select(CrewAvailability).where(
            CrewAvailability.tenant_id == tenant_id,
            col(CrewAvailability.crew_member_id).in_(ids),
        )
        if end is not None:
            statement = statement.where(col(CrewAvailability.start_time) < end)
        if start is not None:
            statement = statement.where(col(CrewAvailability.end_time) > start)
        statement = statement.order_by(col(CrewAvailability.start_time))
        return list(self.session.exec(statement).all())

    @write_operation("save crew availability")
    def add(self, window: CrewAvailability) -> CrewAvailability:
        return self._save(window)
