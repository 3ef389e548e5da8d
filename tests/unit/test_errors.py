"""Unit tests for lifecycle errors and error classification."""

import pytest

from worklink.core.db_client import ConcurrentUpdateError, RecordNotFoundError
from worklink.core.errors import (
    AlreadyAppliedError,
    AlreadyAssignedError,
    ApplicantNotFoundError,
    ErrorCode,
    ErrorSeverity,
    InvalidTransitionError,
    LifecycleError,
    TaskNotOpenError,
    classify_error_with_response,
)


@pytest.mark.unit
class TestLifecycleErrors:
    """Tests for the lifecycle error taxonomy."""

    @pytest.mark.parametrize(
        ("error_cls", "code"),
        [
            (AlreadyAppliedError, ErrorCode.ERR_ALREADY_APPLIED),
            (TaskNotOpenError, ErrorCode.ERR_TASK_NOT_OPEN),
            (ApplicantNotFoundError, ErrorCode.ERR_APPLICANT_NOT_FOUND),
            (AlreadyAssignedError, ErrorCode.ERR_ALREADY_ASSIGNED),
        ],
    )
    def test_codes_and_context(self, error_cls, code):
        error = error_cls("nope", task_id="t1", worker_id="w1")

        assert isinstance(error, LifecycleError)
        assert error.code == code
        assert error.task_id == "t1"
        assert error.worker_id == "w1"
        assert str(error) == "nope"

    def test_invalid_transition_carries_states(self):
        error = InvalidTransitionError("bad move", task_id="t1", current="COMPLETED", target="CANCELLED")

        assert error.code == ErrorCode.ERR_INVALID_STATE_TRANSITION
        assert (error.current, error.target) == ("COMPLETED", "CANCELLED")
        assert error.worker_id is None


@pytest.mark.unit
class TestClassifyErrorWithResponse:
    """Tests for classify_error_with_response."""

    def test_lifecycle_error_is_low_severity(self):
        response = classify_error_with_response(AlreadyAssignedError("taken", task_id="t1"))

        assert response.code == ErrorCode.ERR_ALREADY_ASSIGNED
        assert response.severity == ErrorSeverity.LOW
        assert "already been hired" in response.message

    def test_permission_error(self):
        response = classify_error_with_response(PermissionError("Permission denied"))

        assert response.code == ErrorCode.ERR_PERMISSION_DENIED
        assert response.severity == ErrorSeverity.MEDIUM

    def test_record_not_found(self):
        response = classify_error_with_response(RecordNotFoundError("Record not found in tasks: t9"))

        assert response.code == ErrorCode.ERR_TASK_NOT_FOUND
        assert response.message == "I couldn't find that job."

    def test_concurrent_update(self):
        response = classify_error_with_response(ConcurrentUpdateError("version mismatch"))

        assert response.code == ErrorCode.ERR_CONCURRENT_UPDATE

    @pytest.mark.parametrize(
        "exception",
        [
            ConnectionError("refused"),
            TimeoutError(),
            Exception("Network is unreachable"),
            Exception("upstream returned 503"),
        ],
    )
    def test_network_errors(self, exception):
        response = classify_error_with_response(exception)

        assert response.code == ErrorCode.ERR_NETWORK_ERROR
        assert "connection" in response.suggestion.lower()

    def test_unknown_error(self):
        response = classify_error_with_response(Exception("Something weird happened"))

        assert response.code == ErrorCode.ERR_UNKNOWN
        assert response.severity == ErrorSeverity.MEDIUM
        assert "contact support" in response.suggestion.lower()
