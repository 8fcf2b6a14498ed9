"""Customer service windows and job messages through the orchestrator."""

from datetime import date, datetime, time
from uuid import uuid4

import pydantic
import pytest

from fieldops.domain.scheduling.value_objects import (
    DeliveryStatus,
    MessageChannel,
    MessageDirection,
    TimeWindow,
)
from fieldops.domain.shared.exceptions import (
    JobInUseError,
    JobNotFoundError,
    ServiceWindowNotFoundError,
    ValidationError,
)
from fieldops.models import (
    JobMessageCreate,
    ServiceWindow,
    ServiceWindowCreate,
    ServiceWindowUpdate,
)

from .conftest import ACTOR

MONDAY = date(2030, 1, 7)


def weekly_window(customer_id, **overrides) -> ServiceWindowCreate:
    data = {
        "customer_id": customer_id,
        "title": "Monday access",
        "day_of_week": 0,
        "start_time": time(8),
        "end_time": time(12),
    }
    data.update(overrides)
    return ServiceWindowCreate(**data)


def sms(content="Crew arriving between 8 and 10 tomorrow", **overrides) -> JobMessageCreate:
    data = {"channel": MessageChannel.SMS, "recipient": "+61400000000", "content": content}
    data.update(overrides)
    return JobMessageCreate(**data)


class TestServiceWindowRules:
    def test_applies_on_weekday_within_validity(self):
        window = weekly_window(
            uuid4(),
            valid_from=MONDAY,
            valid_to=date(2030, 1, 31),
            exclude_dates=[date(2030, 1, 14)],
        )
        stored = ServiceWindow.model_validate(window, update={"tenant_id": uuid4()})

        assert stored.applies_on(MONDAY)
        assert not stored.applies_on(date(2030, 1, 8))
        assert not stored.applies_on(date(2030, 1, 14))
        assert stored.applies_on(date(2030, 1, 21))
        assert not stored.applies_on(date(2030, 2, 4))

    def test_window_on_converts_local_hours_to_utc(self):
        window = ServiceWindow.model_validate(
            weekly_window(uuid4(), timezone="Australia/Sydney"), update={"tenant_id": uuid4()}
        )

        # Sydney is UTC+11 in January
        assert window.window_on(MONDAY) == TimeWindow(
            datetime(2030, 1, 6, 21), datetime(2030, 1, 7, 1)
        )
        assert window.window_on(date(2030, 1, 8)) is None

    @pytest.mark.parametrize(
        "overrides",
        [
            {"end_time": time(7)},
            {"valid_from": date(2030, 2, 1), "valid_to": date(2030, 1, 1)},
            {"timezone": "Mars/Olympus_Mons"},
            {"day_of_week": 7},
        ],
    )
    def test_invalid_windows_rejected(self, overrides):
        with pytest.raises(pydantic.ValidationError):
            weekly_window(uuid4(), **overrides)


class TestServiceWindows:
    def test_create_and_filter(self, orchestrator, tenant_id, make_job):
        job = make_job()
        scoped = orchestrator.create_service_window(
            tenant_id, weekly_window(job.customer_id, job_id=job.id)
        )
        other = orchestrator.create_service_window(
            tenant_id, weekly_window(uuid4(), title="Weekday access", day_of_week=None)
        )

        assert [w.id for w in orchestrator.list_service_windows(tenant_id)] == [other.id, scoped.id]
        assert [w.id for w in orchestrator.list_service_windows(tenant_id, job_id=job.id)] == [
            scoped.id
        ]
        assert [
            w.id for w in orchestrator.list_service_windows(tenant_id, customer_id=job.customer_id)
        ] == [scoped.id]
        tuesday = orchestrator.list_service_windows(tenant_id, on_date=date(2030, 1, 8))
        assert [w.id for w in tuesday] == [other.id]
        assert orchestrator.list_service_windows(uuid4()) == []

    def test_job_must_belong_to_customer(self, orchestrator, tenant_id, make_job):
        job = make_job()

        with pytest.raises(ValidationError):
            orchestrator.create_service_window(tenant_id, weekly_window(uuid4(), job_id=job.id))
        with pytest.raises(JobNotFoundError):
            orchestrator.create_service_window(
                tenant_id, weekly_window(job.customer_id, job_id=uuid4())
            )

    def test_deactivated_windows_are_hidden(self, orchestrator, tenant_id):
        window = orchestrator.create_service_window(tenant_id, weekly_window(uuid4()))

        orchestrator.update_service_window(
            tenant_id, window.id, ServiceWindowUpdate(is_active=False)
        )

        assert orchestrator.list_service_windows(tenant_id) == []
        (inactive,) = orchestrator.list_service_windows(tenant_id, active_only=False)
        assert inactive.id == window.id and not inactive.applies_on(MONDAY)

    def test_update_checks_merged_hours(self, orchestrator, tenant_id):
        window = orchestrator.create_service_window(tenant_id, weekly_window(uuid4()))

        updated = orchestrator.update_service_window(
            tenant_id, window.id, ServiceWindowUpdate(start_time=time(9), title=None)
        )
        assert (updated.start_time, updated.title) == (time(9), "Monday access")

        with pytest.raises(ValidationError):
            orchestrator.update_service_window(
                tenant_id, window.id, ServiceWindowUpdate(start_time=time(13))
            )
        (stored,) = orchestrator.list_service_windows(tenant_id)
        assert stored.start_time == time(9)

    def test_delete(self, orchestrator, tenant_id):
        window = orchestrator.create_service_window(tenant_id, weekly_window(uuid4()))

        orchestrator.delete_service_window(tenant_id, window.id)

        assert orchestrator.list_service_windows(tenant_id, active_only=False) == []
        with pytest.raises(ServiceWindowNotFoundError):
            orchestrator.delete_service_window(tenant_id, window.id)
        with pytest.raises(ServiceWindowNotFoundError):
            orchestrator.update_service_window(tenant_id, window.id, ServiceWindowUpdate())

    def test_job_scoped_windows_go_with_the_job(self, orchestrator, tenant_id, make_job):
        job = make_job()
        orchestrator.create_service_window(tenant_id, weekly_window(job.customer_id, job_id=job.id))
        kept = orchestrator.create_service_window(tenant_id, weekly_window(job.customer_id))

        orchestrator.delete_job(tenant_id, job.id, ACTOR)

        assert [w.id for w in orchestrator.list_service_windows(tenant_id)] == [kept.id]


class TestJobMessages:
    def test_send_delivers_through_gateway(self, orchestrator, tenant_id, gateways, make_job):
        job = make_job(title="Replace boiler")

        message = orchestrator.send_message(tenant_id, job.id, sms(), ACTOR)

        assert message.direction == MessageDirection.OUTBOUND
        assert message.delivery_status == DeliveryStatus.SENT
        assert message.sent_at is not None and message.created_by == ACTOR
        (sent,) = gateways.notifications.sent
        assert sent["channel"] == "sms"
        assert sent["recipient"] == "+61400000000"
        assert sent["subject"] == f"{job.job_number}: Replace boiler"
        assert sent["metadata"]["message_id"] == str(message.id)

    def test_gateway_failure_is_recorded(self, orchestrator, tenant_id, gateways, make_job):
        job = make_job()

        def refuse(*args, **kwargs):
            raise ConnectionError("sms provider unreachable")

        gateways.notifications.send = refuse

        message = orchestrator.send_message(tenant_id, job.id, sms(), ACTOR)

        assert message.delivery_status == DeliveryStatus.FAILED
        (stored,) = orchestrator.list_messages(tenant_id, job.id)
        assert stored.delivery_status == DeliveryStatus.FAILED
        assert stored.delivery_error == "sms provider unreachable"
        assert stored.sent_at is None

    def test_listed_newest_first(self, orchestrator, tenant_id, make_job):
        job = make_job()
        first = orchestrator.send_message(
            tenant_id, job.id, sms("First update for the customer"), ACTOR
        )
        second = orchestrator.send_message(
            tenant_id, job.id, sms("Second update for the customer"), ACTOR
        )

        assert [m.id for m in orchestrator.list_messages(tenant_id, job.id)] == [
            second.id,
            first.id,
        ]
        assert orchestrator.list_messages(tenant_id, make_job().id) == []

    def test_unknown_job(self, orchestrator, tenant_id, gateways):
        with pytest.raises(JobNotFoundError):
            orchestrator.send_message(tenant_id, uuid4(), sms(), ACTOR)
        assert gateways.notifications.sent == []

    def test_email_requires_subject(self):
        with pytest.raises(pydantic.ValidationError):
            sms(channel=MessageChannel.EMAIL, recipient="owner@example.com")
        assert sms(channel=MessageChannel.EMAIL, subject="Booking confirmed").subject

    def test_messages_keep_the_job(self, orchestrator, tenant_id, make_job):
        job = make_job()
        orchestrator.send_message(tenant_id, job.id, sms(), ACTOR)

        with pytest.raises(JobInUseError) as exc_info:
            orchestrator.delete_job(tenant_id, job.id, ACTOR)

        assert exc_info.value.details["references"] == {"messages": 1}
