"""Template rendering for automation action messages."""

from fieldops.application.services.automation_actions import flatten_context, render
from fieldops.application.services.job_events import job_context
from fieldops.tests.factories import JobFactory


class TestRender:
    def test_job_fields_are_available_by_name(self):
        job = JobFactory.create_job(title="Replace boiler")

        rendered = render("$job_number / $job_title / $job_status", job_context(job))

        assert rendered == f"{job.job_number} / Replace boiler / planned"

    def test_nested_keys_are_prefixed_once(self):
        flat = flatten_context({"job": {"title": "Fit door", "job_number": "JOB-2030-0001"}})

        assert flat == {"job_title": "Fit door", "job_number": "JOB-2030-0001"}

    def test_top_level_keys_win(self):
        flat = flatten_context({"job": {"title": "nested"}, "job_title": "top"})

        assert flat["job_title"] == "top"

    def test_unknown_placeholders_are_left_alone(self):
        assert render("Reason: $reason", {}) == "Reason: $reason"
        assert render(None, {"reason": "x"}) == ""
