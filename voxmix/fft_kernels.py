"""Radix-4/2 complex FFT kernels working in place on interleaved data.

A sequence of ``n`` floats holds ``n // 2`` complex values as
``[re0, im0, re1, im1, ...]``. The kernels reorder or transform that data in
place. ``w`` is the cos/sin table built for a transform of ``n`` floats,
holding at least ``n // 4`` entries.
"""

from __future__ import annotations

from collections.abc import MutableSequence

__all__ = ["bitrv2", "bitrv2conj", "cftfsub", "cftbsub"]


def _check_length(a: MutableSequence[float], minimum: int) -> int:
    n = len(a)
    if n < minimum or n & (n - 1):
        raise ValueError(
            f"data length must be a power of two of at least {minimum}, got {n}"
        )
    return n


def _check_table(n: int, w: MutableSequence[float]) -> None:
    if n > 8 and len(w) < n // 4:
        raise ValueError(
            f"cos/sin table needs {n // 4} entries for {n} values, got {len(w)}"
        )


def _bit_reverse_table(n: int) -> tuple[list[int], int, int]:
    ip = [0]
    l = n
    m = 1
    while (m << 3) < l:
        l >>= 1
        ip.extend([ip[j] + l for j in range(m)])
        m <<= 1
    return ip, l, m


def bitrv2(a: MutableSequence[float]) -> None:
    """Reorder the complex values of ``a`` into bit-reversed index order."""
    n = _check_length(a, 2)
    ip, l, m = _bit_reverse_table(n)
    m2 = 2 * m

    def swap(j1: int, k1: int) -> None:
        a[j1], a[j1 + 1], a[k1], a[k1 + 1] = a[k1], a[k1 + 1], a[j1], a[j1 + 1]

    if (m << 3) == l:
        for k in range(m):
            for j in range(k):
                j1 = 2 * j + ip[k]
                k1 = 2 * k + ip[j]
                swap(j1, k1)
                j1 += m2
                k1 += 2 * m2
                swap(j1, k1)
                j1 += m2
                k1 -= m2
                swap(j1, k1)
                j1 += m2
                k1 += 2 * m2
                swap(j1, k1)
            j1 = 2 * k + m2 + ip[k]
            swap(j1, j1 + m2)
    else:
        for k in range(1, m):
            for j in range(k):
                j1 = 2 * j + ip[k]
                k1 = 2 * k + ip[j]
                swap(j1, k1)
                swap(j1 + m2, k1 + m2)


def bitrv2conj(a: MutableSequence[float]) -> None:
    """Bit-reverse the complex values of ``a`` and conjugate each of them."""
    n = _check_length(a, 2)
    ip, l, m = _bit_reverse_table(n)
    m2 = 2 * m

    def swap_conj(j1: int, k1: int) -> None:
        a[j1], a[j1 + 1], a[k1], a[k1 + 1] = a[k1], -a[k1 + 1], a[j1], -a[j1 + 1]

    if (m << 3) == l:
        for k in range(m):
            for j in range(k):
                j1 = 2 * j + ip[k]
                k1 = 2 * k + ip[j]
                swap_conj(j1, k1)
                j1 += m2
                k1 += 2 * m2
                swap_conj(j1, k1)
                j1 += m2
                k1 -= m2
                swap_conj(j1, k1)
                j1 += m2
                k1 += 2 * m2
                swap_conj(j1, k1)
            k1 = 2 * k + ip[k]
            a[k1 + 1] = -a[k1 + 1]
            j1 = k1 + m2
            k1 = j1 + m2
            swap_conj(j1, k1)
            k1 += m2
            a[k1 + 1] = -a[k1 + 1]
    else:
        a[1] = -a[1]
        a[m2 + 1] = -a[m2 + 1]
        for k in range(1, m):
            for j in range(k):
                j1 = 2 * j + ip[k]
                k1 = 2 * k + ip[j]
                swap_conj(j1, k1)
                swap_conj(j1 + m2, k1 + m2)
            k1 = 2 * k + ip[k]
            a[k1 + 1] = -a[k1 + 1]
            a[k1 + m2 + 1] = -a[k1 + m2 + 1]


def _cft1st(n: int, a: MutableSequence[float], w: MutableSequence[float]) -> None:
    x0r = a[0] + a[2]
    x0i = a[1] + a[3]
    x1r = a[0] - a[2]
    x1i = a[1] - a[3]
    x2r = a[4] + a[6]
    x2i = a[5] + a[7]
    x3r = a[4] - a[6]
    x3i = a[5] - a[7]
    a[0] = x0r + x2r
    a[1] = x0i + x2i
    a[4] = x0r - x2r
    a[5] = x0i - x2i
    a[2] = x1r - x3i
    a[3] = x1i + x3r
    a[6] = x1r + x3i
    a[7] = x1i - x3r
    wk1r = w[2]
    x0r = a[8] + a[10]
    x0i = a[9] + a[11]
    x1r = a[8] - a[10]
    x1i = a[9] - a[11]
    x2r = a[12] + a[14]
    x2i = a[13] + a[15]
    x3r = a[12] - a[14]
    x3i = a[13] - a[15]
    a[8] = x0r + x2r
    a[9] = x0i + x2i
    a[12] = x2i - x0i
    a[13] = x0r - x2r
    x0r = x1r - x3i
    x0i = x1i + x3r
    a[10] = wk1r * (x0r - x0i)
    a[11] = wk1r * (x0r + x0i)
    x0r = x3i + x1r
    x0i = x3r - x1i
    a[14] = wk1r * (x0i - x0r)
    a[15] = wk1r * (x0i + x0r)
    k1 = 0
    for j in range(16, n, 16):
        k1 += 2
        k2 = 2 * k1
        wk2r = w[k1]
        wk2i = w[k1 + 1]
        wk1r = w[k2]
        wk1i = w[k2 + 1]
        wk3r = wk1r - 2 * wk2i * wk1i
        wk3i = 2 * wk2i * wk1r - wk1i
        x0r = a[j] + a[j + 2]
        x0i = a[j + 1] + a[j + 3]
        x1r = a[j] - a[j + 2]
        x1i = a[j + 1] - a[j + 3]
        x2r = a[j + 4] + a[j + 6]
        x2i = a[j + 5] + a[j + 7]
        x3r = a[j + 4] - a[j + 6]
        x3i = a[j + 5] - a[j + 7]
        a[j] = x0r + x2r
        a[j + 1] = x0i + x2i
        x0r -= x2r
        x0i -= x2i
        a[j + 4] = wk2r * x0r - wk2i * x0i
        a[j + 5] = wk2r * x0i + wk2i * x0r
        x0r = x1r - x3i
        x0i = x1i + x3r
        a[j + 2] = wk1r * x0r - wk1i * x0i
        a[j + 3] = wk1r * x0i + wk1i * x0r
        x0r = x1r + x3i
        x0i = x1i - x3r
        a[j + 6] = wk3r * x0r - wk3i * x0i
        a[j + 7] = wk3r * x0i + wk3i * x0r
        wk1r = w[k2 + 2]
        wk1i = w[k2 + 3]
        wk3r = wk1r - 2 * wk2r * wk1i
        wk3i = 2 * wk2r * wk1r - wk1i
        x0r = a[j + 8] + a[j + 10]
        x0i = a[j + 9] + a[j + 11]
        x1r = a[j + 8] - a[j + 10]
        x1i = a[j + 9] - a[j + 11]
        x2r = a[j + 12] + a[j + 14]
        x2i = a[j + 13] + a[j + 15]
        x3r = a[j + 12] - a[j + 14]
        x3i = a[j + 13] - a[j + 15]
        a[j + 8] = x0r + x2r
        a[j + 9] = x0i + x2i
        x0r -= x2r
        x0i -= x2i
        a[j + 12] = -wk2i * x0r - wk2r * x0i
        a[j + 13] = -wk2i * x0i + wk2r * x0r
        x0r = x1r - x3i
        x0i = x1i + x3r
        a[j + 10] = wk1r * x0r - wk1i * x0i
        a[j + 11] = wk1r * x0i + wk1i * x0r
        x0r = x1r + x3i
        x0i = x1i - x3r
        a[j + 14] = wk3r * x0r - wk3i * x0i
        a[j + 15] = wk3r * x0i + wk3i * x0r


def _radix4_plain(a: MutableSequence[float], j: int, l: int) -> None:
    j1 = j + l
    j2 = j1 + l
    j3 = j2 + l
    x0r = a[j] + a[j1]
    x0i = a[j + 1] + a[j1 + 1]
    x1r = a[j] - a[j1]
    x1i = a[j + 1] - a[j1 + 1]
    x2r = a[j2] + a[j3]
    x2i = a[j2 + 1] + a[j3 + 1]
    x3r = a[j2] - a[j3]
    x3i = a[j2 + 1] - a[j3 + 1]
    a[j] = x0r + x2r
    a[j + 1] = x0i + x2i
    a[j2] = x0r - x2r
    a[j2 + 1] = x0i - x2i
    a[j1] = x1r - x3i
    a[j1 + 1] = x1i + x3r
    a[j3] = x1r + x3i
    a[j3 + 1] = x1i - x3r


def _cftmdl(n: int, l: int, a: MutableSequence[float], w: MutableSequence[float]) -> None:
    m = l << 2
    for j in range(0, l, 2):
        _radix4_plain(a, j, l)
    wk1r = w[2]
    for j in range(m, l + m, 2):
        j1 = j + l
        j2 = j1 + l
        j3 = j2 + l
        x0r = a[j] + a[j1]
        x0i = a[j + 1] + a[j1 + 1]
        x1r = a[j] - a[j1]
        x1i = a[j + 1] - a[j1 + 1]
        x2r = a[j2] + a[j3]
        x2i = a[j2 + 1] + a[j3 + 1]
        x3r = a[j2] - a[j3]
        x3i = a[j2 + 1] - a[j3 + 1]
        a[j] = x0r + x2r
        a[j + 1] = x0i + x2i
        a[j2] = x2i - x0i
        a[j2 + 1] = x0r - x2r
        x0r = x1r - x3i
        x0i = x1i + x3r
        a[j1] = wk1r * (x0r - x0i)
        a[j1 + 1] = wk1r * (x0r + x0i)
        x0r = x3i + x1r
        x0i = x3r - x1i
        a[j3] = wk1r * (x0i - x0r)
        a[j3 + 1] = wk1r * (x0i + x0r)
    k1 = 0
    m2 = 2 * m
    for k in range(m2, n, m2):
        k1 += 2
        k2 = 2 * k1
        wk2r = w[k1]
        wk2i = w[k1 + 1]
        wk1r = w[k2]
        wk1i = w[k2 + 1]
        wk3r = wk1r - 2 * wk2i * wk1i
        wk3i = 2 * wk2i * wk1r - wk1i
        for j in range(k, l + k, 2):
            j1 = j + l
            j2 = j1 + l
            j3 = j2 + l
            x0r = a[j] + a[j1]
            x0i = a[j + 1] + a[j1 + 1]
            x1r = a[j] - a[j1]
            x1i = a[j + 1] - a[j1 + 1]
            x2r = a[j2] + a[j3]
            x2i = a[j2 + 1] + a[j3 + 1]
            x3r = a[j2] - a[j3]
            x3i = a[j2 + 1] - a[j3 + 1]
            a[j] = x0r + x2r
            a[j + 1] = x0i + x2i
            x0r -= x2r
            x0i -= x2i
            a[j2] = wk2r * x0r - wk2i * x0i
            a[j2 + 1] = wk2r * x0i + wk2i * x0r
            x0r = x1r - x3i
            x0i = x1i + x3r
            a[j1] = wk1r * x0r - wk1i * x0i
            a[j1 + 1] = wk1r * x0i + wk1i * x0r
            x0r = x1r + x3i
            x0i = x1i - x3r
            a[j3] = wk3r * x0r - wk3i * x0i
            a[j3 + 1] = wk3r * x0i + wk3i * x0r
        wk1r = w[k2 + 2]
        wk1i = w[k2 + 3]
        wk3r = wk1r - 2 * wk2r * wk1i
        wk3i = 2 * wk2r * wk1r - wk1i
        for j in range(k + m, l + (k + m), 2):
            j1 = j + l
            j2 = j1 + l
            j3 = j2 + l
            x0r = a[j] + a[j1]
            x0i = a[j + 1] + a[j1 + 1]
            x1r = a[j] - a[j1]
            x1i = a[j + 1] - a[j1 + 1]
            x2r = a[j2] + a[j3]
            x2i = a[j2 + 1] + a[j3 + 1]
            x3r = a[j2] - a[j3]
            x3i = a[j2 + 1] - a[j3 + 1]
            a[j] = x0r + x2r
            a[j + 1] = x0i + x2i
            x0r -= x2r
            x0i -= x2i
            a[j2] = -wk2i * x0r - wk2r * x0i
            a[j2 + 1] = -wk2i * x0i + wk2r * x0r
            x0r = x1r - x3i
            x0i = x1i + x3r
            a[j1] = wk1r * x0r - wk1i * x0i
            a[j1 + 1] = wk1r * x0i + wk1i * x0r
            x0r = x1r + x3i
            x0i = x1i - x3r
            a[j3] = wk3r * x0r - wk3i * x0i
            a[j3 + 1] = wk3r * x0i + wk3i * x0r


def _early_stages(n: int, a: MutableSequence[float], w: MutableSequence[float]) -> int:
    l = 2
    if n > 8:
        _cft1st(n, a, w)
        l = 8
        while (l << 2) < n:
            _cftmdl(n, l, a, w)
            l <<= 2
    return l


def cftfsub(a: MutableSequence[float], w: MutableSequence[float]) -> None:
    """Forward butterflies on bit-reversed data: X[k] = sum x[j]*exp(2*pi*i*j*k/n)."""
    n = _check_length(a, 4)
    _check_table(n, w)
    l = _early_stages(n, a, w)
    if (l << 2) == n:
        for j in range(0, l, 2):
            _radix4_plain(a, j, l)
    else:
        for j in range(0, l, 2):
            j1 = j + l
            x0r = a[j] - a[j1]
            x0i = a[j + 1] - a[j1 + 1]
            a[j] += a[j1]
            a[j + 1] += a[j1 + 1]
            a[j1] = x0r
            a[j1 + 1] = x0i


def cftbsub(a: MutableSequence[float], w: MutableSequence[float]) -> None:
    """Backward butterflies on conjugated bit-reversed data: exp(-2*pi*i*j*k/n)."""
    n = _check_length(a, 4)
    _check_table(n, w)
    l = _early_stages(n, a, w)
    if (l << 2) == n:
        for j in range(0, l, 2):
            j1 = j + l
            j2 = j1 + l
            j3 = j2 + l
            x0r = a[j] + a[j1]
            x0i = -a[j + 1] - a[j1 + 1]
            x1r = a[j] - a[j1]
            x1i = -a[j + 1] + a[j1 + 1]
            x2r = a[j2] + a[j3]
            x2i = a[j2 + 1] + a[j3 + 1]
            x3r = a[j2] - a[j3]
            x3i = a[j2 + 1] - a[j3 + 1]
            a[j] = x0r + x2r
            a[j + 1] = x0i - x2i
            a[j2] = x0r - x2r
            a[j2 + 1] = x0i + x2i
            a[j1] = x1r - x3i
            a[j1 + 1] = x1i - x3r
            a[j3] = x1r + x3i
            a[j3 + 1] = x1i + x3r
    else:
        for j in range(0, l, 2):
            j1 = j + l
            x0r = a[j] - a[j1]
            x0i = -a[j + 1] + a[j1 + 1]
            a[j] += a[j1]
            a[j + 1] = -a[j + 1] - a[j1 + 1]
            a[j1] = x0r
            a[j1 + 1] = x0i