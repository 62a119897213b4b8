"""Tests for the bounded job poller.

Test coverage:
- Status normalization across vendor spellings
- Terminal detection and completion
- Attempt budget and PollingTimedOut
- Failure reasons on FAILED and TIMEOUT
- Progress observer behavior
"""

import pytest

from lofi_radio.errors import GenerationFailed, MalformedResponse, PollingTimedOut
from lofi_radio.poller import GenerationJob, JobStatus, normalize_status, poll_until_terminal


def scripted(statuses, result="payload", failure_reason=None):
    """Build submit/query callables that walk through a list of statuses."""
    remaining = list(statuses)
    queries = []

    def make(status):
        return GenerationJob(
            id="job-1",
            status=status,
            progress=None,
            result=result if status is JobStatus.COMPLETED else None,
            failure_reason=failure_reason,
        )

    def submit():
        return make(remaining.pop(0))

    def query(job_id):
        queries.append(job_id)
        return make(remaining.pop(0))

    return submit, query, queries


class TestNormalizeStatus:
    """Tests for normalize_status."""

    @pytest.mark.parametrize(
        "raw,expected",
        [
            ("preparing", JobStatus.QUEUED),
            ("queued", JobStatus.QUEUED),
            ("running", JobStatus.IN_PROGRESS),
            ("in_progress", JobStatus.IN_PROGRESS),
            ("streaming", JobStatus.IN_PROGRESS),
            ("reviewing", JobStatus.IN_PROGRESS),
            ("succeeded", JobStatus.COMPLETED),
            ("COMPLETED", JobStatus.COMPLETED),
            ("failed", JobStatus.FAILED),
            ("timeouted", JobStatus.TIMEOUT),
        ],
    )
    def test_vendor_spellings(self, raw, expected):
        """Vendor status strings map onto the canonical statuses."""
        assert normalize_status(raw) is expected

    @pytest.mark.parametrize("raw", [None, "", "exploded"])
    def test_missing_or_unknown_status(self, raw):
        """Missing or unknown statuses are malformed responses."""
        with pytest.raises(MalformedResponse):
            normalize_status(raw)

    def test_unknown_status_fallback(self):
        """Unknown spellings use the fallback status when one is given."""
        assert normalize_status("mastering", unknown=JobStatus.IN_PROGRESS) is JobStatus.IN_PROGRESS

    def test_missing_status_ignores_fallback(self):
        """A missing status is malformed even with a fallback status."""
        with pytest.raises(MalformedResponse):
            normalize_status(None, unknown=JobStatus.IN_PROGRESS)

    def test_terminal_statuses(self):
        """Only COMPLETED, FAILED and TIMEOUT are terminal."""
        terminal = {s for s in JobStatus if s.is_terminal}
        assert terminal == {JobStatus.COMPLETED, JobStatus.FAILED, JobStatus.TIMEOUT}


class TestPollUntilTerminal:
    """Tests for poll_until_terminal."""

    def test_completes_after_polls(self):
        """Job completing on the third poll returns its payload."""
        submit, query, queries = scripted(
            [JobStatus.QUEUED, JobStatus.IN_PROGRESS, JobStatus.IN_PROGRESS, JobStatus.COMPLETED]
        )
        sleeps = []

        job = poll_until_terminal(submit, query, max_attempts=5, interval_seconds=6.0, sleep=sleeps.append)

        assert job.status is JobStatus.COMPLETED
        assert job.result == "payload"
        assert queries == ["job-1", "job-1", "job-1"]
        assert sleeps == [6.0, 6.0, 6.0]

    def test_completed_on_submit_skips_polling(self):
        """A job already complete at submit time is never queried."""
        submit, query, queries = scripted([JobStatus.COMPLETED])

        job = poll_until_terminal(submit, query, max_attempts=3, interval_seconds=1.0, sleep=lambda s: None)

        assert job.status is JobStatus.COMPLETED
        assert queries == []

    def test_times_out_after_budget(self):
        """Never-terminal jobs raise PollingTimedOut after exactly max_attempts polls."""
        submit, query, queries = scripted([JobStatus.IN_PROGRESS] * 10)

        with pytest.raises(PollingTimedOut) as exc_info:
            poll_until_terminal(
                submit, query, max_attempts=3, interval_seconds=1.0, sleep=lambda s: None, label="Test job"
            )

        assert len(queries) == 3
        assert exc_info.value.attempts == 3
        assert exc_info.value.last_status == "in_progress"
        assert "Test job" in str(exc_info.value)

    def test_failed_job_carries_reason(self):
        """FAILED jobs raise GenerationFailed with the vendor's reason."""
        submit, query, _ = scripted(
            [JobStatus.QUEUED, JobStatus.FAILED], failure_reason="content policy"
        )

        with pytest.raises(GenerationFailed) as exc_info:
            poll_until_terminal(submit, query, max_attempts=5, interval_seconds=0, sleep=lambda s: None)

        assert exc_info.value.reason == "content policy"

    def test_vendor_timeout_without_reason(self):
        """TIMEOUT without a reason reports 'unknown reason'."""
        submit, query, _ = scripted([JobStatus.QUEUED, JobStatus.TIMEOUT])

        with pytest.raises(GenerationFailed) as exc_info:
            poll_until_terminal(submit, query, max_attempts=5, interval_seconds=0, sleep=lambda s: None)

        assert exc_info.value.reason == "unknown reason"
        assert "timeout" in str(exc_info.value)

    def test_progress_observer_called_per_poll(self):
        """on_progress receives every polled snapshot with its attempt number."""
        submit, query, _ = scripted([JobStatus.QUEUED, JobStatus.IN_PROGRESS, JobStatus.COMPLETED])
        seen = []

        poll_until_terminal(
            submit,
            query,
            max_attempts=5,
            interval_seconds=0,
            on_progress=lambda job, attempt: seen.append((job.status, attempt)),
            sleep=lambda s: None,
        )

        assert seen == [(JobStatus.IN_PROGRESS, 1), (JobStatus.COMPLETED, 2)]

    def test_observer_errors_do_not_stop_polling(self):
        """An exception in on_progress is logged and polling continues."""
        submit, query, _ = scripted([JobStatus.QUEUED, JobStatus.IN_PROGRESS, JobStatus.COMPLETED])

        def broken_observer(job, attempt):
            raise RuntimeError("observer crashed")

        job = poll_until_terminal(
            submit, query, max_attempts=5, interval_seconds=0, on_progress=broken_observer, sleep=lambda s: None
        )

        assert job.status is JobStatus.COMPLETED
