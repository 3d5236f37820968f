"""Tests for MUD wire frames."""

import json

import pytest

from mud_relay.models.frame import (
    FrameError,
    InboundWorldFrame,
    OutboundWorldFrame,
    decode_frame,
    encode_frame,
)


class TestInboundWorldFrame:
    """Test inbound frame validation."""

    def test_from_dict(self):
        frame = InboundWorldFrame.from_dict(
            {"channel": "town", "name": "Alice", "message": "hi", "emoted": 0}
        )

        assert frame.channel == "town"
        assert frame.name == "Alice"
        assert frame.message == "hi"
        assert frame.is_emote is False

    def test_emoted_defaults_to_zero(self):
        frame = InboundWorldFrame.from_dict({"channel": "town", "name": "Alice", "message": "hi"})
        assert frame.emoted == 0

    def test_emote_flag(self):
        frame = InboundWorldFrame.from_dict(
            {"channel": "town", "name": "Alice", "message": "waves", "emoted": 1}
        )
        assert frame.is_emote is True

    @pytest.mark.parametrize(
        "data",
        [
            ["town", "Alice", "hi"],
            {"name": "Alice", "message": "hi"},
            {"channel": "", "name": "Alice", "message": "hi"},
            {"channel": "town", "name": "Alice"},
            {"channel": "town", "name": "Alice", "message": 5},
            {"channel": "town", "name": "Alice", "message": "hi", "emoted": 2},
            {"channel": "town", "name": "Alice", "message": "hi", "emoted": True},
        ],
    )
    def test_invalid_frames(self, data):
        with pytest.raises(FrameError):
            InboundWorldFrame.from_dict(data)


class TestOutboundWorldFrame:
    """Test outbound and control frames."""

    def test_auth_frame(self):
        frame = OutboundWorldFrame.auth("secret")

        assert frame.to_dict() == {"channel": "auth", "name": "bot", "message": "secret"}
        assert frame.is_control

    def test_heartbeat_frame(self):
        frame = OutboundWorldFrame.heartbeat()

        assert frame.to_dict() == {"channel": "heartbeat", "name": "bot", "message": "ping"}
        assert frame.is_control

    def test_chat_frame_is_not_control(self):
        assert not OutboundWorldFrame("town", "Alice", "hi").is_control


class TestCodec:
    """Test JSON line encoding and decoding."""

    def test_encode_is_single_line(self):
        data = encode_frame(OutboundWorldFrame("town", "Alice", "line one\nline two"))

        assert data.endswith(b"\n")
        assert data.count(b"\n") == 1
        assert json.loads(data) == {
            "channel": "town",
            "name": "Alice",
            "message": "line one\nline two",
        }

    def test_encode_keeps_unicode(self):
        data = encode_frame(OutboundWorldFrame("town", "Zoë", "héllo"))
        assert "Zoë".encode("utf-8") in data

    def test_decode(self):
        frame = decode_frame(b'{"channel": "town", "name": "Alice", "message": "hi", "emoted": 0}')
        assert frame == InboundWorldFrame("town", "Alice", "hi", 0)

    def test_decode_invalid_json(self):
        with pytest.raises(FrameError, match="Invalid JSON"):
            decode_frame(b"{not json")
