"""Real and complex discrete Fourier transforms on power-of-two lengths.

Both transforms work in place on a mutable sequence of floats and keep
their cos/sin tables between calls. A table is rebuilt only when a longer
transform than any before needs it; smaller transforms reuse the larger
table.
"""

from __future__ import annotations

import math
from collections.abc import MutableSequence

from voxmix.fft_kernels import bitrv2, bitrv2conj, cftbsub, cftfsub

__all__ = ["make_wt", "make_ct", "Fft4g"]


def make_wt(nw: int) -> list[float]:
    """Build the cos/sin table of ``nw`` entries used by the complex butterflies."""
    if nw < 0:
        raise ValueError("table size must not be negative")
    w = [0.0] * nw
    if nw > 2:
        nwh = nw >> 1
        delta = math.atan(1.0) / nwh
        w[0] = 1.0
        w[1] = 0.0
        w[nwh] = math.cos(delta * nwh)
        w[nwh + 1] = w[nwh]
        if nwh > 2:
            for j in range(2, nwh, 2):
                x = math.cos(delta * j)
                y = math.sin(delta * j)
                w[j] = x
                w[j + 1] = y
                w[nw - j] = y
                w[nw - j + 1] = x
            bitrv2(w)
    return w


def make_ct(nc: int) -> list[float]:
    """Build the cos/sin table of ``nc`` entries used by the real-data stages."""
    if nc < 0:
        raise ValueError("table size must not be negative")
    c = [0.0] * nc
    if nc > 1:
        nch = nc >> 1
        delta = math.atan(1.0) / nch
        c[0] = math.cos(delta * nch)
        c[nch] = 0.5 * c[0]
        for j in range(1, nch):
            c[j] = 0.5 * math.cos(delta * j)
            c[nc - j] = 0.5 * math.sin(delta * j)
    return c


def _rftfsub(a: MutableSequence[float], c: list[float]) -> None:
    n = len(a)
    nc = len(c)
    m = n >> 1
    ks = 2 * nc // m
    kk = 0
    for j in range(2, m, 2):
        k = n - j
        kk += ks
        wkr = 0.5 - c[nc - kk]
        wki = c[kk]
        xr = a[j] - a[k]
        xi = a[j + 1] + a[k + 1]
        yr = wkr * xr - wki * xi
        yi = wkr * xi + wki * xr
        a[j] -= yr
        a[j + 1] -= yi
        a[k] += yr
        a[k + 1] -= yi


def _rftbsub(a: MutableSequence[float], c: list[float]) -> None:
    n = len(a)
    nc = len(c)
    a[1] = -a[1]
    m = n >> 1
    ks = 2 * nc // m
    kk = 0
    for j in range(2, m, 2):
        k = n - j
        kk += ks
        wkr = 0.5 - c[nc - kk]
        wki = c[kk]
        xr = a[j] - a[k]
        xi = a[j + 1] + a[k + 1]
        yr = wkr * xr + wki * xi
        yi = wkr * xi - wki * xr
        a[j] -= yr
        a[j + 1] = yi - a[j + 1]
        a[k] += yr
        a[k + 1] = yi - a[k + 1]
    a[m + 1] = -a[m + 1]


def _check_length(a: MutableSequence[float]) -> int:
    n = len(a)
    if n < 2 or n & (n - 1):
        raise ValueError(f"data length must be a power of two of at least 2, got {n}")
    return n


class Fft4g:
    """In-place FFT with cached cos/sin tables.

    ``cdft`` treats ``a`` as interleaved complex values
    ``[re0, im0, re1, im1, ...]``; ``rdft`` treats it as real samples and
    stores the half spectrum as ``a[2k] = R[k]``, ``a[2k+1] = I[k]`` with
    ``a[1] = R[n/2]``.
    """

    def __init__(self) -> None:
        self._w: list[float] = []
        self._c: list[float] = []

    def _ensure_wt(self, n: int) -> None:
        if n > len(self._w) << 2:
            self._w = make_wt(n >> 2)
            self._c = []

    def _ensure_ct(self, n: int) -> None:
        if n > len(self._c) << 2:
            self._c = make_ct(n >> 2)

    def cdft(self, a: MutableSequence[float], isgn: int) -> None:
        """Complex DFT of ``a`` in place.

        With ``isgn >= 0`` computes ``X[k] = sum x[j] exp(2*pi*i*j*k/n)``,
        otherwise ``exp(-2*pi*i*j*k/n)``. The two are inverse up to a factor
        of ``1/n`` where ``n = len(a) // 2``.
        """
        n = _check_length(a)
        self._ensure_wt(n)
        if n > 4:
            if isgn >= 0:
                bitrv2(a)
                cftfsub(a, self._w)
            else:
                bitrv2conj(a)
                cftbsub(a, self._w)
        elif n == 4:
            cftfsub(a, self._w)

    def rdft(self, a: MutableSequence[float], isgn: int) -> None:
        """Real DFT of ``a`` in place, or its inverse when ``isgn < 0``.

        The inverse yields the input scaled by ``len(a) / 2``.
        """
        n = _check_length(a)
        self._ensure_wt(n)
        self._ensure_ct(n)
        if isgn >= 0:
            if n > 4:
                bitrv2(a)
                cftfsub(a, self._w)
                _rftfsub(a, self._c)
            elif n == 4:
                cftfsub(a, self._w)
            xi = a[0] - a[1]
            a[0] += a[1]
            a[1] = xi
        else:
            a[1] = 0.5 * (a[0] - a[1])
            a[0] -= a[1]
            if n > 4:
                _rftbsub(a, self._c)
                bitrv2(a)
                cftbsub(a, self._w)
            elif n == 4:
                cftfsub(a, self._w)