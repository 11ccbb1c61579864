"""Conference mixer: each participant hears the sum of all the others."""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field

from voxmix.rtp import rtp_timestamp
from voxmix.sample_array import SampleArray

SYSTEM_SAMPLERATE = 8000
FRAME_SIZE = 160
MAX_LINEAR_SAMPLE = 32737
MIXER_DELAY_MS = 40
MIXER_DELAY = MIXER_DELAY_MS * SYSTEM_SAMPLERATE // 1000
AUDIO_BUFFER_SIZE = 1 << 12
MIX_CHANNEL_ID = 0

_TS_MASK = 0xFFFFFFFF


class ChannelNotFoundError(LookupError):
    """Raised when audio is requested for a channel the mixer does not know."""

    def __init__(self, channel_id: int) -> None:
        super().__init__(f"channel #{channel_id} does not exist")
        self.channel_id = channel_id


@dataclass
class ChannelState:
    """Per-participant timing bases and received audio."""

    ts_rtp_base: int
    ts_system_base: int
    samples: SampleArray = field(default_factory=SampleArray)


def _ms_to_samples(ms: int) -> int:
    # The sample rate is a multiple of 1000, so this division is exact.
    return ms * SYSTEM_SAMPLERATE // 1000


class MultiPartyMixer:
    """Mixes PCM frames from all channels of one conference.

    Frames are 160 samples of 16-bit PCM at 8 kHz. Each channel gets the
    mix of every other channel back; channel 0, when not itself a
    participant, receives the full mix.
    """

    def __init__(self, base_ts: int) -> None:
        self.base_ts = base_ts
        self._channels: dict[int, ChannelState] = {}
        self._mixed = SampleArray()
        self.scaling_factor = 16

    def is_new_channel(self, channel_id: int) -> bool:
        """Return True when ``channel_id`` has not been added yet."""
        return channel_id not in self._channels

    def add_channel(self, channel_id: int, packet: bytes, ts: int) -> None:
        """Register a channel, anchoring its RTP clock to system time ``ts``."""
        if channel_id in self._channels:
            return
        self._channels[channel_id] = ChannelState(
            ts_rtp_base=rtp_timestamp(packet),
            ts_system_base=ts,
        )

    def put_channel_packet(
        self, channel_id: int, timestamp: int, packet: bytes, pcm: Sequence[int]
    ) -> None:
        """Add one decoded frame of ``channel_id`` to the mix.

        ``packet`` is the received RTP packet, whose timestamp places the
        frame in time; ``pcm`` holds its decoded samples.
        """
        if not packet:
            return
        if len(packet) > AUDIO_BUFFER_SIZE:
            raise ValueError(
                f"packet of {len(packet)} bytes exceeds {AUDIO_BUFFER_SIZE}"
            )
        frame = list(pcm)
        if len(frame) != FRAME_SIZE:
            raise ValueError(f"expected {FRAME_SIZE} samples, got {len(frame)}")
        if any(not -32768 <= s <= 32767 for s in frame):
            raise ValueError("PCM samples must fit in 16 bits")

        if self.is_new_channel(channel_id):
            self.add_channel(channel_id, packet, timestamp)
        channel = self._channels[channel_id]

        ts = (
            rtp_timestamp(packet)
            - channel.ts_rtp_base
            + _ms_to_samples(channel.ts_system_base - self.base_ts)
        ) & _TS_MASK
        put_ts = (ts + MIXER_DELAY) & _TS_MASK

        channel.samples.put(put_ts, frame)
        mixed = self._mixed.get(put_ts, FRAME_SIZE)
        self._mixed.put(put_ts, [m + s for m, s in zip(mixed, frame)])

    def get_channel_packet(self, channel_id: int, ts: int) -> list[int]:
        """Return the frame ``channel_id`` should hear at system time ``ts``."""
        user_ts = _ms_to_samples(ts - self.base_ts) & _TS_MASK
        channel = self._channels.get(channel_id)
        if channel is not None:
            mixed = self._mixed.get(user_ts, FRAME_SIZE)
            own = channel.samples.get(user_ts, FRAME_SIZE)
            return self._scale([m - o for m, o in zip(mixed, own)])
        if channel_id == MIX_CHANNEL_ID:
            return self._scale(self._mixed.get(user_ts, FRAME_SIZE))
        raise ChannelNotFoundError(channel_id)

    def _scale(self, mixed: list[int]) -> list[int]:
        if self.scaling_factor < 64:
            self.scaling_factor += 1

        out = []
        for sample in mixed:
            s = (sample * self.scaling_factor) >> 6
            if abs(s) > MAX_LINEAR_SAMPLE:
                self.scaling_factor = (MAX_LINEAR_SAMPLE << 6) // abs(sample)
                s = -MAX_LINEAR_SAMPLE if s < 0 else MAX_LINEAR_SAMPLE
            out.append(s)
        return out