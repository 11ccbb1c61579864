import math

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from voxmix.fft import Fft4g, make_ct, make_wt

SIZES = [4, 8, 16, 32, 64, 128, 256]


def _close(xs, ys, tol=1e-7):
    assert len(xs) == len(ys)
    for x, y in zip(xs, ys):
        assert x == pytest.approx(y, abs=tol)


def test_make_wt_fixed_entries():
    w = make_wt(64)
    assert len(w) == 64
    assert w[0] == 1.0
    assert w[1] == 0.0
    assert w[2] == pytest.approx(math.cos(math.pi / 4))


@pytest.mark.parametrize("nw", [8, 16, 32, 64])
def test_make_wt_pairs_on_unit_circle(nw):
    w = make_wt(nw)
    for i in range(0, nw, 2):
        assert w[i] ** 2 + w[i + 1] ** 2 == pytest.approx(1.0)


def test_make_ct_fixed_entries():
    c = make_ct(64)
    assert c[0] == pytest.approx(math.cos(math.pi / 4))
    assert c[32] == pytest.approx(0.5 * c[0])


@pytest.mark.parametrize("nc", [4, 16, 64])
def test_make_ct_pairs_on_half_circle(nc):
    c = make_ct(nc)
    for j in range(1, nc // 2):
        assert (2 * c[j]) ** 2 + (2 * c[nc - j]) ** 2 == pytest.approx(1.0)


def test_table_sizes_negative_rejected():
    with pytest.raises(ValueError):
        make_wt(-1)
    with pytest.raises(ValueError):
        make_ct(-4)


@pytest.mark.parametrize("n", SIZES)
def test_rdft_constant_goes_to_dc(n):
    a = [1.0] * n
    Fft4g().rdft(a, 1)
    _close(a, [float(n)] + [0.0] * (n - 1))


@pytest.mark.parametrize("n", SIZES)
def test_rdft_alternating_goes_to_nyquist(n):
    a = [(-1.0) ** j for j in range(n)]
    Fft4g().rdft(a, 1)
    _close(a, [0.0, float(n)] + [0.0] * (n - 2))


@pytest.mark.parametrize("n", [8, 16, 64, 256])
def test_rdft_cosine_and_sine_bins(n):
    k0 = 1
    cos_data = [math.cos(2 * math.pi * j * k0 / n) for j in range(n)]
    sin_data = [math.sin(2 * math.pi * j * k0 / n) for j in range(n)]
    fft = Fft4g()
    fft.rdft(cos_data, 1)
    fft.rdft(sin_data, 1)
    expected_cos = [0.0] * n
    expected_cos[2 * k0] = n / 2
    expected_sin = [0.0] * n
    expected_sin[2 * k0 + 1] = n / 2
    _close(cos_data, expected_cos)
    _close(sin_data, expected_sin)


@pytest.mark.parametrize("n", [2] + SIZES)
def test_rdft_round_trip(n):
    original = [math.sin(0.37 * j) + 0.25 * j for j in range(n)]
    a = list(original)
    fft = Fft4g()
    fft.rdft(a, 1)
    fft.rdft(a, -1)
    _close([x * 2 / n for x in a], original)


@pytest.mark.parametrize("n", SIZES)
def test_cdft_impulse_gives_flat_spectrum(n):
    a = [0.0] * n
    a[0] = 1.0
    Fft4g().cdft(a, 1)
    _close(a, [1.0, 0.0] * (n // 2))


@pytest.mark.parametrize("count", [4, 8, 32, 128])
@pytest.mark.parametrize("isgn", [1, -1])
def test_cdft_exponential_concentrates_in_one_bin(count, isgn):
    k0 = 3 % count
    sign = -1 if isgn >= 0 else 1
    a = []
    for j in range(count):
        angle = sign * 2 * math.pi * j * k0 / count
        a.extend([math.cos(angle), math.sin(angle)])
    Fft4g().cdft(a, isgn)
    expected = [0.0] * (2 * count)
    expected[2 * k0] = float(count)
    _close(a, expected)


@pytest.mark.parametrize("n", [2] + SIZES)
def test_cdft_round_trip(n):
    original = [math.cos(0.11 * j) - 0.5 * (j % 3) for j in range(n)]
    a = list(original)
    fft = Fft4g()
    fft.cdft(a, -1)
    fft.cdft(a, 1)
    _close([x / (n // 2) for x in a], original)


def test_larger_table_reused_for_smaller_transform():
    data = [math.sin(0.7 * j) for j in range(16)]
    shared = Fft4g()
    shared.rdft([0.0] * 256, 1)
    reused = list(data)
    shared.rdft(reused, 1)
    fresh = list(data)
    Fft4g().rdft(fresh, 1)
    _close(reused, fresh)

    cdata = [math.cos(0.3 * j) for j in range(32)]
    shared.cdft([0.0] * 256, 1)
    reused_c = list(cdata)
    shared.cdft(reused_c, 1)
    fresh_c = list(cdata)
    Fft4g().cdft(fresh_c, 1)
    _close(reused_c, fresh_c)


@pytest.mark.parametrize("n", [0, 1, 3, 6, 12, 100])
def test_bad_lengths_rejected(n):
    fft = Fft4g()
    with pytest.raises(ValueError):
        fft.rdft([0.0] * n, 1)
    with pytest.raises(ValueError):
        fft.cdft([0.0] * n, 1)


@settings(max_examples=40, deadline=None)
@given(
    st.sampled_from(SIZES).flatmap(
        lambda n: st.lists(
            st.floats(min_value=-1000, max_value=1000, allow_nan=False),
            min_size=n,
            max_size=n,
        )
    )
)
def test_rdft_parseval_and_round_trip(values):
    n = len(values)
    a = list(values)
    fft = Fft4g()
    fft.rdft(a, 1)
    energy = sum(x * x for x in values)
    spectrum = a[0] ** 2 + a[1] ** 2 + 2 * sum(
        a[2 * k] ** 2 + a[2 * k + 1] ** 2 for k in range(1, n // 2)
    )
    assert spectrum / n == pytest.approx(energy, rel=1e-9, abs=1e-6)
    fft.rdft(a, -1)
    _close([x * 2 / n for x in a], values, tol=1e-6)