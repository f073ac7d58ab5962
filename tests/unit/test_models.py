from datetime import UTC, datetime

import pytest
from pydantic import ValidationError

from mindchat.conversation.models import Message, MessagePage, Role


def test_epoch_millis_coerced_to_utc():
    message = Message(id="a", role=Role.USER, text="hi", timestamp=1_700_000_000_000)
    assert message.timestamp == datetime(2023, 11, 14, 22, 13, 20, tzinfo=UTC)
    assert message.timestamp_ms == 1_700_000_000_000


def test_naive_datetime_assumed_utc():
    message = Message(id="a", role="assistant", timestamp=datetime(2025, 1, 1, 9, 30))
    assert message.timestamp.tzinfo is UTC


def test_bool_timestamp_rejected():
    with pytest.raises(ValidationError):
        Message(id="a", role=Role.USER, timestamp=True)


def test_empty_id_rejected():
    with pytest.raises(ValidationError):
        Message(id="", role=Role.USER, timestamp=0)


def test_repr_never_contains_text():
    message = Message(id="a", role=Role.USER, text="my secret feelings", timestamp=0)
    assert "my secret feelings" not in repr(message)
    assert message.redacted()["text"].startswith("hash:")


def test_redaction_only_touches_text():
    message = Message(
        id="a", role=Role.USER, text="my secret feelings", timestamp=0, language="en"
    )
    dump = message.redacted()
    plain = message.model_dump(exclude_none=True)
    assert dump.pop("text") != plain.pop("text")
    assert dump == plain
    assert dump["language"] == "en"


def test_immutable():
    message = Message(id="a", role=Role.USER, timestamp=0)
    with pytest.raises(ValidationError):
        message.text = "changed"


def test_context_entry_projection():
    message = Message(
        id="a", role=Role.ASSISTANT, text="hello", timestamp=1_000, safety_flag=True
    )
    assert message.to_context_entry() == {"role": "assistant", "content": "hello", "timestamp": 1000}


def test_empty_page():
    page = MessagePage()
    assert page.messages == ()
    assert page.next_cursor is None
    assert not page.has_more
