"""RTP fixed header parsing."""

from __future__ import annotations

import struct
from dataclasses import dataclass

RTP_HEADER_SIZE = 12

_FIXED = struct.Struct(">BBHII")


@dataclass(frozen=True)
class RtpHeader:
    """The fields of an RTP packet header."""

    version: int
    padding: bool
    extension: bool
    marker: bool
    payload_type: int
    sequence: int
    timestamp: int
    ssrc: int
    csrc: tuple[int, ...] = ()

    @property
    def csrc_count(self) -> int:
        return len(self.csrc)

    @property
    def size(self) -> int:
        """Length in bytes of the header including its CSRC list."""
        return RTP_HEADER_SIZE + 4 * len(self.csrc)

    @classmethod
    def parse(cls, data: bytes) -> RtpHeader:
        """Parse the header at the start of ``data``."""
        if len(data) < RTP_HEADER_SIZE:
            raise ValueError(
                f"RTP header needs {RTP_HEADER_SIZE} bytes, got {len(data)}"
            )
        first, second, sequence, timestamp, ssrc = _FIXED.unpack_from(data)
        count = first & 0x0F
        needed = RTP_HEADER_SIZE + 4 * count
        if len(data) < needed:
            raise ValueError(
                f"RTP header with {count} CSRC entries needs {needed} bytes, got {len(data)}"
            )
        csrc = struct.unpack_from(f">{count}I", data, RTP_HEADER_SIZE)
        return cls(
            version=first >> 6,
            padding=bool(first & 0x20),
            extension=bool(first & 0x10),
            marker=bool(second & 0x80),
            payload_type=second & 0x7F,
            sequence=sequence,
            timestamp=timestamp,
            ssrc=ssrc,
            csrc=tuple(csrc),
        )


def rtp_timestamp(data: bytes) -> int:
    """Return the timestamp field of the RTP packet in ``data``."""
    if len(data) < RTP_HEADER_SIZE:
        raise ValueError(f"RTP header needs {RTP_HEADER_SIZE} bytes, got {len(data)}")
    return struct.unpack_from(">I", data, 4)[0]