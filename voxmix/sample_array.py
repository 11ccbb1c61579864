"""Timed ring buffer of audio samples addressed by 32-bit wrapping timestamps."""

from __future__ import annotations

from collections.abc import Sequence

SIZE_MIX_BUFFER = 1 << 14
"""Number of samples held by a :class:`SampleArray`; a power of two."""

_TS_MASK = 0xFFFFFFFF
_SYS_TS_MASK = 0xFFFFFFFFFFFF
_OFFSET_MASK = SIZE_MIX_BUFFER - 1


def ts_less(left: int, right: int) -> bool:
    """Compare two 32-bit sample timestamps, allowing for wrap-around."""
    return ((left - right) & _TS_MASK) > (1 << 31)


def sys_ts_less(left: int, right: int) -> bool:
    """Compare two system timestamps that wrap at the 48-bit boundary."""
    return ((left - right) & _SYS_TS_MASK) > (1 << 47)


class SampleArray:
    """Ring buffer of samples keyed by a wrapping sample timestamp.

    Only the most recent ``SIZE_MIX_BUFFER`` samples before ``last_ts`` are
    kept; reading outside that window yields silence.
    """

    def __init__(self) -> None:
        self._buffer: list[int] = [0] * SIZE_MIX_BUFFER
        self.last_ts = 0
        self.initialized = False

    def clear_all(self) -> None:
        """Zero the whole buffer."""
        self._buffer = [0] * SIZE_MIX_BUFFER

    def clear(self, start_ts: int, end_ts: int) -> None:
        """Zero the samples from ``start_ts`` up to, not including, ``end_ts``."""
        start_ts &= _TS_MASK
        end_ts &= _TS_MASK
        if (end_ts - start_ts) & _TS_MASK >= SIZE_MIX_BUFFER:
            self.clear_all()
            return

        start_off = start_ts & _OFFSET_MASK
        end_off = end_ts & _OFFSET_MASK
        if start_off < end_off:
            self._buffer[start_off:end_off] = [0] * (end_off - start_off)
        else:
            self._buffer[start_off:] = [0] * (SIZE_MIX_BUFFER - start_off)
            self._buffer[:end_off] = [0] * end_off

    def _write(self, ts: int, samples: list[int]) -> None:
        off = ts & _OFFSET_MASK
        head = min(len(samples), SIZE_MIX_BUFFER - off)
        self._buffer[off:off + head] = samples[:head]
        tail = samples[head:]
        self._buffer[:len(tail)] = tail

    def _read(self, ts: int, size: int) -> list[int]:
        off = ts & _OFFSET_MASK
        if off + size <= SIZE_MIX_BUFFER:
            return self._buffer[off:off + size]
        return self._buffer[off:] + self._buffer[:size - (SIZE_MIX_BUFFER - off)]

    def put(self, ts: int, samples: Sequence[int]) -> None:
        """Store ``samples`` starting at timestamp ``ts``.

        Data older than the buffer window is silently dropped; a jump forward
        clears the gap between the previous end and ``ts``.
        """
        data = list(samples)
        if len(data) > SIZE_MIX_BUFFER:
            raise ValueError(
                f"cannot store {len(data)} samples in a buffer of {SIZE_MIX_BUFFER}"
            )
        ts &= _TS_MASK

        if not self.initialized:
            self.clear_all()
            self.last_ts = ts
            self.initialized = True

        if ts_less(ts, (self.last_ts - SIZE_MIX_BUFFER) & _TS_MASK):
            return

        if ts_less(self.last_ts, ts):
            self.clear(self.last_ts, ts)

        self._write(ts, data)
        end = (ts + len(data)) & _TS_MASK
        if ts_less(self.last_ts, end):
            self.last_ts = end

    def get(self, ts: int, size: int) -> list[int]:
        """Return ``size`` samples starting at ``ts``, silence where unknown."""
        if size < 0:
            raise ValueError("size must not be negative")
        ts &= _TS_MASK
        end = (ts + size) & _TS_MASK
        window_start = (self.last_ts - SIZE_MIX_BUFFER) & _TS_MASK

        if (
            not self.initialized
            or not ts_less(ts, self.last_ts)
            or not ts_less(window_start, end)
        ):
            return [0] * size

        if ts_less(ts, window_start):
            skipped = (window_start - ts) & _TS_MASK
            return [0] * skipped + self._read(window_start, size - skipped)

        if ts_less(self.last_ts, end):
            available = (self.last_ts - ts) & _TS_MASK
            return self._read(ts, available) + [0] * (size - available)

        return self._read(ts, size)