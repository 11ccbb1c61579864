import struct

import pytest
from hypothesis import given
from hypothesis import strategies as st

from voxmix.rtp import RTP_HEADER_SIZE, RtpHeader, rtp_timestamp


def _packet(first, second, seq, ts, ssrc, csrc=(), payload=b""):
    return (
        struct.pack(">BBHII", first, second, seq, ts, ssrc)
        + b"".join(struct.pack(">I", c) for c in csrc)
        + payload
    )


def test_parse_version_two_header():
    data = _packet(0x80, 97, 7, 123456, 0xDEADBEEF, payload=b"abc")
    header = RtpHeader.parse(data)
    assert header.version == 2
    assert header.payload_type == 97
    assert header.marker is False
    assert header.padding is False
    assert header.extension is False
    assert header.sequence == 7
    assert header.timestamp == 123456
    assert header.ssrc == 0xDEADBEEF
    assert header.csrc == ()
    assert header.size == RTP_HEADER_SIZE


def test_parse_flags_and_csrc():
    data = _packet(0x80 | 0x20 | 0x10 | 2, 0x80 | 97, 1, 2, 3, csrc=(11, 22))
    header = RtpHeader.parse(data)
    assert header.padding is True
    assert header.extension is True
    assert header.marker is True
    assert header.payload_type == 97
    assert header.csrc == (11, 22)
    assert header.csrc_count == 2
    assert header.size == RTP_HEADER_SIZE + 8


def test_parse_too_short():
    with pytest.raises(ValueError):
        RtpHeader.parse(b"\x80\x61\x00")


def test_parse_missing_csrc_bytes():
    data = _packet(0x80 | 3, 97, 1, 2, 3)
    with pytest.raises(ValueError):
        RtpHeader.parse(data)


def test_rtp_timestamp_too_short():
    with pytest.raises(ValueError):
        rtp_timestamp(b"\x80" * 11)


@given(
    seq=st.integers(min_value=0, max_value=0xFFFF),
    ts=st.integers(min_value=0, max_value=0xFFFFFFFF),
    ssrc=st.integers(min_value=0, max_value=0xFFFFFFFF),
    pt=st.integers(min_value=0, max_value=127),
)
def test_fields_round_trip(seq, ts, ssrc, pt):
    data = _packet(0x80, pt, seq, ts, ssrc, payload=b"\x01\x02")
    header = RtpHeader.parse(data)
    assert (header.sequence, header.timestamp, header.ssrc, header.payload_type) == (
        seq,
        ts,
        ssrc,
        pt,
    )
    assert rtp_timestamp(data) == ts