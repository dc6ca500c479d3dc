"""Tests for the ChatKC wire codec."""

from __future__ import annotations

import json

import pytest

from elmkc_core.errors import ElmKCDecodeError, UnknownFrameTypeError
from elmkc_core.protocol import (
    Accepted,
    AuthLevel,
    Chat,
    Delete,
    GetUserConf,
    GoogleAuth,
    Hello,
    Join,
    Message,
    Part,
    ServerMsg,
    Status,
    UserStatus,
    decode,
    encode,
    hello,
    message,
)

from .conftest import chat_payload


class TestGoogleAuth:
    """Tests for the authentication descriptor."""

    def test_fields(self):
        """Test descriptor flattens to auth/token fields."""
        assert GoogleAuth(token="T").to_fields() == {"auth": "google", "token": "T"}

    def test_is_frozen(self):
        """Test that the descriptor is immutable."""
        auth = GoogleAuth(token="T")
        with pytest.raises(AttributeError):
            auth.token = "other"  # type: ignore[misc]


class TestOutboundConstructors:
    """Tests for hello() and message()."""

    def test_hello_requests_full_backlog(self):
        assert hello() == Hello(last_message=-1)

    def test_message_without_reply(self):
        """Test missing reply target becomes 0."""
        assert message("hi") == Message(reply=0, text="hi")

    def test_message_with_reply(self):
        assert message("hi", reply=17) == Message(reply=17, text="hi")

    def test_negative_reply_rejected(self):
        with pytest.raises(ValueError, match="negative"):
            Message(reply=-1, text="hi")

    def test_bool_reply_rejected(self):
        with pytest.raises(ValueError, match="integer"):
            Message(reply=True, text="hi")  # type: ignore[arg-type]


class TestEncode:
    """Tests for encode()."""

    def test_message_is_flattened(self):
        """Test auth fields sit next to type/data, not nested."""
        result = json.loads(encode(Message(reply=0, text="hi"), GoogleAuth(token="T")))

        assert result == {
            "auth": "google",
            "token": "T",
            "type": "message",
            "data": {"reply": 0, "text": "hi"},
        }
        assert not isinstance(result["auth"], dict)

    def test_hello(self):
        result = json.loads(encode(hello(), GoogleAuth(token="abc")))

        assert result == {
            "auth": "google",
            "token": "abc",
            "type": "hello",
            "data": {"last_message": -1},
        }

    def test_uses_descriptor_at_call_time(self):
        """Test the same frame encodes with whichever descriptor is given."""
        frame = message("x")
        first = json.loads(encode(frame, GoogleAuth(token="one")))
        second = json.loads(encode(frame, GoogleAuth(token="two")))

        assert first["token"] == "one"
        assert second["token"] == "two"


class TestDecodeVariants:
    """Tests decoding every inbound variant."""

    @pytest.mark.parametrize(
        ("payload", "expected"),
        [
            (
                {"type": "accepted", "data": {"message": "ok"}},
                Accepted(message="ok"),
            ),
            (
                {"type": "authlevel", "data": {"value": 3}},
                AuthLevel(value=3),
            ),
            (
                {"type": "delete", "data": {"messages": [1, 2, 2, 5]}},
                Delete(messages=frozenset({1, 2, 5})),
            ),
            (
                {"type": "getuserconf", "data": {"color": "00ff00", "name": "bread"}},
                GetUserConf(color="00ff00", name="bread"),
            ),
            ({"type": "join", "data": {"name": "alice"}}, Join(name="alice")),
            ({"type": "part", "data": {"name": "alice"}}, Part(name="alice")),
            (
                {"type": "servermsg", "data": {"message": "a<br>b"}},
                ServerMsg(message="a<br>b"),
            ),
            (
                {"type": "status", "data": {"status": "nameexists"}},
                Status(status=UserStatus.NAME_EXISTS),
            ),
        ],
    )
    def test_decode(self, payload, expected):
        assert decode(json.dumps(payload)) == expected

    def test_decode_chat(self):
        """Test chat frames decode field for field."""
        frame = decode(json.dumps(chat_payload()))

        assert frame == Chat(
            auth=1,
            author="bread",
            author_color="ff0000",
            author_id=42,
            author_level=0,
            donate_value="0",
            id=1001,
            message="hello &amp; welcome",
            reply=0,
            time=1_690_000_000_000,
        )

    @pytest.mark.parametrize("status", list(UserStatus))
    def test_every_status(self, status):
        frame = decode(json.dumps({"type": "status", "data": {"status": status.value}}))
        assert frame == Status(status=status)

    def test_extra_fields_ignored(self):
        """Test undeclared fields in data and at top level are ignored."""
        payload = {
            "type": "join",
            "data": {"name": "alice", "badge": "gold"},
            "seq": 9,
        }
        assert decode(json.dumps(payload)) == Join(name="alice")

    def test_decode_bytes(self):
        assert decode(b'{"type": "part", "data": {"name": "bob"}}') == Part(name="bob")


class TestDecodeErrors:
    """Tests decode() failure modes."""

    def test_invalid_json(self):
        with pytest.raises(ElmKCDecodeError, match="not valid JSON"):
            decode("not valid json {")

    def test_deeply_nested_json(self):
        with pytest.raises(ElmKCDecodeError, match="not valid JSON"):
            decode("[" * 200_000)

    def test_oversized_integer_literal(self):
        """Test integers past the int parsing digit limit are rejected."""
        text = '{"type": "join", "data": {"name": "a"}, "x": ' + "9" * 5000 + "}"
        with pytest.raises(ElmKCDecodeError, match="not valid JSON"):
            decode(text)

    def test_non_object(self):
        with pytest.raises(ElmKCDecodeError, match="JSON object"):
            decode("[1, 2, 3]")

    def test_missing_type(self):
        with pytest.raises(ElmKCDecodeError, match="'type'"):
            decode('{"data": {}}')

    def test_unknown_type(self):
        """Test unknown tags raise the dedicated subclass."""
        with pytest.raises(UnknownFrameTypeError) as excinfo:
            decode('{"type": "typing", "data": {"name": "x"}}')

        assert excinfo.value.frame_type == "typing"
        assert isinstance(excinfo.value, ElmKCDecodeError)

    def test_missing_data(self):
        with pytest.raises(ElmKCDecodeError, match="no data object"):
            decode('{"type": "join"}')

    def test_missing_field(self):
        with pytest.raises(ElmKCDecodeError, match="Missing field 'name'"):
            decode('{"type": "join", "data": {}}')

    def test_wrong_field_type(self):
        with pytest.raises(ElmKCDecodeError, match="must be a string"):
            decode('{"type": "join", "data": {"name": 7}}')

    def test_negative_integer(self):
        payload = chat_payload(id=-1)
        with pytest.raises(ElmKCDecodeError, match="negative"):
            decode(json.dumps(payload))

    def test_bool_is_not_integer(self):
        with pytest.raises(ElmKCDecodeError, match="integer"):
            decode('{"type": "authlevel", "data": {"value": true}}')

    def test_delete_requires_list(self):
        with pytest.raises(ElmKCDecodeError, match="list of ids"):
            decode('{"type": "delete", "data": {"messages": 4}}')

    def test_delete_rejects_non_integer_ids(self):
        with pytest.raises(ElmKCDecodeError, match="integer"):
            decode('{"type": "delete", "data": {"messages": [1, "2"]}}')

    def test_unknown_status(self):
        with pytest.raises(ElmKCDecodeError, match="Unknown user status"):
            decode('{"type": "status", "data": {"status": "sleepy"}}')
