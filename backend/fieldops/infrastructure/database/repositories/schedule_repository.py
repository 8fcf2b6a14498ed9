"""Schedule event repository implementations."""

from collections.abc import Iterable
from datetime import datetime
from uuid import UUID

from sqlmodel import col, func, select

from fieldops.domain.scheduling.repositories import (
    EventStatusLogRepository,
    ScheduleEventRepository,
)
from fieldops.domain.scheduling.value_objects import ACTIVE_EVENT_STATUSES
from fieldops.models import EventStatusLog, ScheduleEvent

from .base import BaseRepository, read_operation, write_operation


class SqlScheduleEventRepository(BaseRepository, ScheduleEventRepository):
    """
    SQLModel implementation of the schedule event repository.

    Crew assignments are a JSON column, so crew filtering happens after the
    time-window query.
    """

    def _active(self, tenant_id: UUID):
        return select(ScheduleEvent).where(
            ScheduleEvent.tenant_id == tenant_id,
            col(ScheduleEvent.status).in_(list(ACTIVE_EVENT_STATUSES)),
        )

    @read_operation("get schedule event")
    def get(self, tenant_id: UUID, job_id: UUID, event_id: UUID) -> ScheduleEvent | None:
        statement = select(ScheduleEvent).where(
            ScheduleEvent.tenant_id == tenant_id,
            ScheduleEvent.job_id == job_id,
            ScheduleEvent.id == event_id,
        )
        return self.session.exec(statement).first()

    @read_operation("list schedule events")
    def list_for_job(self, tenant_id: UUID, job_id: UUID) -> list[ScheduleEvent]:
        statement = (
            select(ScheduleEvent)
            .where(ScheduleEvent.tenant_id == tenant_id, ScheduleEvent.job_id == job_id)
            .order_by(col(ScheduleEvent.start_time))
        )
        return list(self.session.exec(statement).all())

    @read_operation("count schedule events")
    def count_for_job(self, tenant_id: UUID, job_id: UUID) -> int:
        statement = (
            select(func.count())
            .select_from(ScheduleEvent)
            .where(ScheduleEvent.tenant_id == tenant_id, ScheduleEvent.job_id == job_id)
        )
        return self.session.exec(statement).one()

    @read_operation("find crew commitments")
    def list_active_for_crew(
        self,
        tenant_id: UUID,
        crew_ids: Iterable[UUID],
        start: datetime,
        end: datetime,
        exclude_event_id: UUID | None = None,
    ) -> list[ScheduleEvent]:
        crew = set(crew_ids)
        statement = self._active(tenant_id).where(
            col(ScheduleEvent.start_time) < end,
            col(ScheduleEvent.end_time) > start,
        )
        if exclude_event_id is not None:
            statement = statement.where(ScheduleEvent.id != exclude_event_id)
        statement = statement.order_by(col(ScheduleEvent.start_time))
        return [
            event
            for event in self.session.exec(statement).all()
            if crew.intersection(event.assigned_crew_ids or [])
        ]

    @read_operation("list active schedule events")
    def list_active_between(
        self, tenant_id: UUID, start: datetime, end: datetime
    ) -> list[ScheduleEvent]:
        statement = (
            self._active(tenant_id)
            .where(col(ScheduleEvent.start_time) < end, col(ScheduleEvent.end_time) > start)
            .order_by(col(ScheduleEvent.start_time))
        )
        return list(self.session.exec(statement).all())

    @read_operation("list upcoming schedule events")
    def list_active_since(self, tenant_id: UUID, since: datetime) -> list[ScheduleEvent]:
        statement = (
            self._active(tenant_id)
            .where(col(ScheduleEvent.end_time) > since)
            .order_by(col(ScheduleEvent.start_time))
        )
        return list(self.session.exec(statement).all())

    @read_operation("list schedule events by start")
    def list_starting_between(
        self, tenant_id: UUID, start: datetime, end: datetime
    ) -> list[ScheduleEvent]:
        statement = (
            select(ScheduleEvent)
            .where(
                ScheduleEvent.tenant_id == tenant_id,
                col(ScheduleEvent.start_time) >= start,
                col(ScheduleEvent.start_time) < end,
            )
            .order_by(col(ScheduleEvent.start_time))
        )
        return list(self.session.exec(statement).all())

    @write_operation("save schedule event")
    def add(self, event: ScheduleEvent) -> ScheduleEvent:
        return self._save(event)

    @write_operation("delete schedule event")
    def delete(self, event: ScheduleEvent) -> None:
        self._remove(event)


class SqlEventStatusLogRepository(BaseRepository, EventStatusLogRepository):
    @write_operation("append event status log")
    def add(self, entry: EventStatusLog) -> EventStatusLog:
        return self._save(entry)

    @read_operation("list event status history")
    def list_for_event(self, tenant_id: UUID, event_id: UUID) -> list[EventStatusLog]:
        statement = (
            select(EventStatusLog)
            .where(
                EventStatusLog.tenant_id == tenant_id,
                EventStatusLog.event_id == event_id,
            )
            .order_by(col(EventStatusLog.changed_at))
        )
        return list(self.session.exec(statement).all())
