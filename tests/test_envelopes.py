"""Envelope construction, wire format and parsing."""

import json

import pytest

from whistlebox.envelopes import (
    Attachment,
    build_file_envelope,
    build_message_envelope,
    parse_envelope,
    serialize_envelope,
)
from whistlebox.errors import IntegrityError
from whistlebox.schemas import FileEnvelope, MessageEnvelope


def test_message_envelope_wire_format():
    env = build_message_envelope(b"\x01\x02\x03", b"\xff" * 32)
    raw = serialize_envelope(env)
    assert raw == (
        '{"algorithm":"libsodium-sealed-box","data":"AQID",'
        '"checksum":"' + "/" * 42 + '8="}'
    )


def test_file_envelope_wire_format_uses_hex_checksum():
    att = Attachment(filename="a.txt", mimetype="text/plain", content=b"0123456789")
    env = build_file_envelope(att, b"\x01\x02\x03", b"\xab" * 32)
    raw = serialize_envelope(env)
    assert raw == (
        '{"filename":"a.txt","mimetype":"text/plain","size":10,'
        '"algorithm":"libsodium-sealed-box","data":"AQID",'
        '"checksum":"' + "ab" * 32 + '"}'
    )


def test_empty_values_are_still_present():
    raw = serialize_envelope(FileEnvelope())
    assert set(json.loads(raw)) == {"filename", "mimetype", "size", "algorithm", "data", "checksum"}
    assert json.loads(raw)["size"] == 0


def test_serialize_rejects_non_envelopes():
    with pytest.raises(TypeError):
        serialize_envelope({"algorithm": "libsodium-sealed-box"})


def test_parse_picks_variant():
    msg = serialize_envelope(build_message_envelope(b"x", b"y"))
    att = Attachment(filename="f.bin", mimetype="application/octet-stream", content=b"z")
    fil = serialize_envelope(build_file_envelope(att, b"x", b"y"))
    assert isinstance(parse_envelope(msg), MessageEnvelope)
    assert isinstance(parse_envelope(fil), FileEnvelope)


@pytest.mark.parametrize("raw", [
    "not json",
    "[]",
    '{"algorithm":"mock-sealed-box","data":"AQID","checksum":""}',
    '{"algorithm":"libsodium-sealed-box","data":"AQID","checksum":"","extra":1}',
    '{"filename":"a","mimetype":"b","size":-1,"algorithm":"libsodium-sealed-box","data":"","checksum":""}',
])
def test_parse_rejects_malformed(raw):
    with pytest.raises(IntegrityError):
        parse_envelope(raw)


@pytest.mark.asyncio
async def test_attachment_from_path(tmp_path):
    p = tmp_path / "notes.txt"
    p.write_bytes(b"ten bytes!")
    att = await Attachment.from_path(str(p))
    assert att.filename == "notes.txt"
    assert att.mimetype == "text/plain"
    assert att.size == 10
