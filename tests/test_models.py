"""Tests for message, response and failure models."""

import dataclasses
from datetime import datetime, timezone

import pytest
from pydantic import ValidationError

from pushline.models.failure import DeadLetterRecord, FailureDetails, FailureInfo
from pushline.models.message import Message
from pushline.models.response import (
    ErrorKind,
    ErrorResponse,
    ResponseType,
    SuccessResponse,
    UnavailableResponse,
)


class TestMessage:
    """Test Message model."""

    def test_defaults(self):
        """Only the target is required."""
        message = Message(target="device-1")

        assert message.collapse_key is None
        assert message.data == {}
        assert message.delay_while_idle is False
        assert message.time_to_live is None
        assert len(message.message_id) == 32

    def test_message_ids_are_unique(self):
        """Each message gets its own generated id."""
        assert Message(target="a").message_id != Message(target="a").message_id

    def test_parses_from_camel_case_json(self):
        """Message should parse from camelCase JSON."""
        json_data = """
        {
            "target": "device-1",
            "collapseKey": "score",
            "data": {"home": "2", "away": "1"},
            "delayWhileIdle": true,
            "timeToLive": 3600,
            "messageId": "m-42"
        }
        """
        message = Message.model_validate_json(json_data)

        assert message.collapse_key == "score"
        assert message.data == {"home": "2", "away": "1"}
        assert message.delay_while_idle is True
        assert message.time_to_live == 3600
        assert message.message_id == "m-42"

    def test_serializes_to_camel_case(self):
        """Message should serialize field names to camelCase."""
        message = Message(target="device-1", collapse_key="score", message_id="m-1")

        data = message.model_dump(by_alias=True, exclude_none=True)

        assert data == {
            "target": "device-1",
            "collapseKey": "score",
            "data": {},
            "delayWhileIdle": False,
            "messageId": "m-1",
        }

    def test_is_immutable(self):
        """Assigning to a field after construction fails."""
        message = Message(target="device-1")

        with pytest.raises(ValidationError):
            message.target = "device-2"

    @pytest.mark.parametrize(
        "fields",
        [
            {"target": ""},
            {"target": "device-1", "time_to_live": -1},
            {"target": "device-1", "data": {"count": 3}},
        ],
    )
    def test_rejects_invalid_fields(self, fields):
        """Empty targets, negative TTLs and non-string payload values are rejected."""
        with pytest.raises(ValidationError):
            Message(**fields)

    def test_str_includes_identity(self):
        """str() names the id and target."""
        message = Message(target="device-1", message_id="m-1")

        assert "m-1" in str(message)
        assert "device-1" in str(message)


class TestResponses:
    """Test the response taxonomy."""

    @pytest.fixture
    def message(self):
        return Message(target="device-1")

    def test_success(self, message):
        response = SuccessResponse(message=message, sent_message_id="abc")

        assert response.is_success
        assert response.response_type == ResponseType.SUCCESS
        assert response.replacement_target is None

    def test_unavailable(self, message):
        response = UnavailableResponse(message=message)

        assert not response.is_success
        assert response.response_type == ResponseType.SERVICE_UNAVAILABLE
        assert not response.has_retry_after

    @pytest.mark.parametrize("kind", list(ErrorKind))
    def test_error_response_type_matches_kind(self, message, kind):
        """Every error kind has a response type of the same name."""
        response = ErrorResponse(message=message, kind=kind)

        assert response.response_type.value == kind.value
        assert not response.is_success

    def test_responses_are_immutable(self, message):
        response = SuccessResponse(message=message, sent_message_id="abc")

        with pytest.raises(dataclasses.FrozenInstanceError):
            response.sent_message_id = "other"


class TestFailureModels:
    """Test dead-letter failure models."""

    def test_failure_details_exclude_none(self):
        """Only populated detail fields are serialized."""
        details = FailureDetails(error_code="NotRegistered")

        assert details.model_dump(by_alias=True, exclude_none=True) == {"errorCode": "NotRegistered"}

    def test_failure_info_serializes_nested_details(self):
        """FailureInfo serializes nested details in camelCase."""
        info = FailureInfo(
            type="transport_error",
            message="connection refused",
            details=FailureDetails(exception_type="PushTransportError", stack_trace="Traceback"),
        )

        assert info.model_dump(by_alias=True, exclude_none=True) == {
            "type": "transport_error",
            "message": "connection refused",
            "details": {"exceptionType": "PushTransportError", "stackTrace": "Traceback"},
        }

    def test_dead_letter_record_parses_from_json(self):
        """A published record can be read back by a consumer of the dead-letter queue."""
        json_data = """
        {
            "message": {"target": "device-1", "collapseKey": "news", "messageId": "m-1"},
            "attempts": 3,
            "failure": {
                "type": "retries_exhausted",
                "message": "Gave up",
                "details": {"errorCode": "ServiceUnavailable", "retryAfter": "2026-10-19T12:00:00Z"}
            }
        }
        """
        record = DeadLetterRecord.model_validate_json(json_data)

        assert record.message.message_id == "m-1"
        assert record.message.collapse_key == "news"
        assert record.attempts == 3
        assert record.failure.details.error_code == "ServiceUnavailable"
        assert record.failure.details.retry_after == datetime(2026, 10, 19, 12, tzinfo=timezone.utc)
