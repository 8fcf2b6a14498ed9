import pytest

from fieldops.tests.factories import CrewFactory, EventFactory, JobFactory

ACTOR = "dispatcher@example.com"


@pytest.fixture
def make_job(orchestrator, tenant_id):
    def _make(**kwargs):
        return orchestrator.create_job(tenant_id, JobFactory.job_create(**kwargs), ACTOR)

    return _make


@pytest.fixture
def make_crew(orchestrator, tenant_id):
    def _make(**kwargs):
        return orchestrator.create_crew_member(tenant_id, CrewFactory.member_create(**kwargs))

    return _make


@pytest.fixture
def book(orchestrator, tenant_id):
    """Create a schedule event for ``job`` with the given crew members."""

    def _book(job, crew, start, end, **kwargs):
        return orchestrator.create_event(
            tenant_id,
            job.id,
            EventFactory.event_create([m.id for m in crew], start, end, **kwargs),
            ACTOR,
        )

    return _book
