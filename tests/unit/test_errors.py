"""Unit tests for error classification utilities."""

import pytest

from habitflow.core.errors import (
    ErrorCategory,
    ErrorCode,
    ErrorSeverity,
    MalformedDataError,
    PersistenceError,
    classify_error,
    classify_error_with_response,
)


@pytest.mark.unit
class TestClassifyError:
    """Tests for classify_error function."""

    def test_persistence_error(self):
        assert classify_error(PersistenceError("goals", "write failed")) == ErrorCategory.PERSISTENCE_FAILED

    def test_malformed_data(self):
        assert classify_error(MalformedDataError("goals", "bad json")) == ErrorCategory.MALFORMED_DATA

    def test_other_exceptions_are_unknown(self):
        assert classify_error(RuntimeError("boom")) == ErrorCategory.UNKNOWN
        assert classify_error(KeyError("goal g1 not found")) == ErrorCategory.UNKNOWN


@pytest.mark.unit
class TestClassifyErrorWithResponse:
    """Tests for classify_error_with_response function."""

    def test_persistence_response(self):
        response = classify_error_with_response(PersistenceError("REMEMBER_TASKS", "write failed"))

        assert response.code == ErrorCode.ERR_PERSISTENCE_FAILED
        assert response.severity == ErrorSeverity.HIGH
        assert "kept" in response.message.lower()

    def test_malformed_data_response(self):
        response = classify_error_with_response(MalformedDataError("goals", "bad json"))

        assert response.code == ErrorCode.ERR_MALFORMED_DATA
        assert response.severity == ErrorSeverity.MEDIUM

    def test_unknown_response(self):
        response = classify_error_with_response(ValueError("odd"))

        assert response.code == ErrorCode.ERR_UNKNOWN
        assert response.suggestion
