"""Tests for webhook body decoding."""

from __future__ import annotations

import pytest

from src.errors import ValidationError
from src.gateway.decode import decode_and_validate_json
from src.telegram.payload import TelegramEnvelope


def test_decodes_valid_body() -> None:
    envelope = decode_and_validate_json(
        TelegramEnvelope, b'{"update_id": 5, "message": {"message_id": 1, "text": "hi"}}',
    )
    assert envelope.update_id == 5
    assert envelope.message is not None
    assert envelope.message.text == "hi"


def test_empty_body_rejected() -> None:
    with pytest.raises(ValidationError, match="empty body"):
        decode_and_validate_json(TelegramEnvelope, b"  ")


def test_invalid_json_rejected() -> None:
    with pytest.raises(ValidationError):
        decode_and_validate_json(TelegramEnvelope, b"{not json")


def test_missing_required_field_named() -> None:
    with pytest.raises(ValidationError, match="update_id"):
        decode_and_validate_json(TelegramEnvelope, b'{"message": {"message_id": 1}}')


def test_wrong_type_rejected() -> None:
    with pytest.raises(ValidationError, match="message.message_id"):
        decode_and_validate_json(
            TelegramEnvelope, b'{"update_id": 1, "message": {"message_id": "abc"}}',
        )


def test_out_of_range_date_named() -> None:
    with pytest.raises(ValidationError, match="message.date"):
        decode_and_validate_json(
            TelegramEnvelope,
            b'{"update_id": 1, "message": {"message_id": 1, "date": 100000000000000000000}}',
        )
