import pytest

from domain.errors import InvalidTransitionError, NotFoundError
from domain.schemas import JobStatus
from domain.state_machine import LEGAL_TRANSITIONS, JobStateMachine, check_transition
from tests.conftest import sample_result


@pytest.fixture
def machine(store):
    store.create_job("job_1", "cv_1", "report_1", "Backend Engineer")
    return JobStateMachine(store)


def test_only_forward_transitions_are_legal():
    legal = {(src, dst) for src, targets in LEGAL_TRANSITIONS.items() for dst in targets}
    assert legal == {
        (JobStatus.QUEUED, JobStatus.PROCESSING),
        (JobStatus.PROCESSING, JobStatus.COMPLETED),
        (JobStatus.PROCESSING, JobStatus.FAILED),
    }
    for src in JobStatus:
        for dst in JobStatus:
            if (src, dst) in legal:
                check_transition("j", src, dst)
            else:
                with pytest.raises(InvalidTransitionError):
                    check_transition("j", src, dst)


def test_happy_path_stores_result(machine, store):
    machine.started("job_1")
    machine.completed("job_1", sample_result())

    job = store.get_job("job_1")
    assert job.status is JobStatus.COMPLETED
    assert job.result == sample_result()
    assert job.error_message is None
    assert store.history["job_1"] == [JobStatus.QUEUED, JobStatus.PROCESSING, JobStatus.COMPLETED]


def test_failure_stores_message_and_no_result(machine, store):
    machine.started("job_1")
    machine.failed("job_1", "profile scoring failed: bad json")

    job = store.get_job("job_1")
    assert job.status is JobStatus.FAILED
    assert job.result is None
    assert job.error_message == "profile scoring failed: bad json"


def test_cannot_complete_a_queued_job(machine, store):
    with pytest.raises(InvalidTransitionError):
        machine.completed("job_1", sample_result())
    assert store.get_job("job_1").status is JobStatus.QUEUED
    assert store.get_job("job_1").result is None


def test_terminal_states_are_final(machine, store):
    machine.started("job_1")
    machine.failed("job_1", "boom")
    with pytest.raises(InvalidTransitionError):
        machine.started("job_1")
    with pytest.raises(InvalidTransitionError):
        machine.completed("job_1", sample_result())
    assert store.history["job_1"] == [JobStatus.QUEUED, JobStatus.PROCESSING, JobStatus.FAILED]


def test_unknown_job_is_reported(machine):
    with pytest.raises(NotFoundError):
        machine.started("job_missing")


def test_retried_does_not_change_status(machine, store):
    machine.started("job_1")
    machine.retried("job_1", 2)
    assert store.get_job("job_1").status is JobStatus.PROCESSING
