"""Tests for the exception hierarchy in deploysync.lib.errors."""

import pytest

from deploysync.lib.errors import (
    DeploySyncError,
    EventSourceConnectionError,
    EventSourceResponseError,
    InvalidConfigError,
    NotFoundError,
    RetryExhaustedError,
    StateStoreError,
    UnexpectedStatusError,
)


@pytest.mark.unit
class TestErrorHierarchy:
    """Every error derives from DeploySyncError."""

    @pytest.mark.parametrize(
        "error",
        [
            InvalidConfigError("field", "bad"),
            NotFoundError("nothing"),
            UnexpectedStatusError("https://x", 500),
            EventSourceConnectionError("https://x"),
            EventSourceResponseError("https://x", "not json"),
            StateStoreError("get", "boom"),
            RetryExhaustedError(3, ValueError("last")),
        ],
    )
    def test_is_deploysync_error(self, error: DeploySyncError) -> None:
        """Errors can be caught through the base class."""
        assert isinstance(error, DeploySyncError)


@pytest.mark.unit
class TestInvalidConfigError:
    """Tests for InvalidConfigError."""

    def test_includes_field_and_message(self) -> None:
        """The field and message are kept and rendered."""
        error = InvalidConfigError("github.organisation", "must not be empty")
        assert error.field == "github.organisation"
        assert error.message == "must not be empty"
        assert "github.organisation" in str(error)


@pytest.mark.unit
class TestUnexpectedStatusError:
    """Tests for UnexpectedStatusError."""

    def test_message_with_detail(self) -> None:
        """The status, URL and remote detail are rendered."""
        error = UnexpectedStatusError("https://api/x", 422, "Validation Failed")
        assert error.status_code == 422
        assert "422" in str(error)
        assert "https://api/x" in str(error)
        assert "Validation Failed" in str(error)

    def test_message_without_detail(self) -> None:
        """The message ends after the URL when no detail is known."""
        error = UnexpectedStatusError("https://api/x", 500)
        assert str(error) == "Unexpected status code 500 from https://api/x"


@pytest.mark.unit
class TestEventSourceConnectionError:
    """Tests for EventSourceConnectionError."""

    def test_includes_original_error(self) -> None:
        """The transport error is appended to the message."""
        error = EventSourceConnectionError("https://api", ConnectionError("refused"))
        assert "https://api" in error.message
        assert "refused" in error.message
