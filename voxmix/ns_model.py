"""Noise model building blocks: feature settings, quantile noise estimate, spectral features."""

from __future__ import annotations

import math
from collections.abc import Sequence
from dataclasses import dataclass

__all__ = [
    "FeatureExtractionParams",
    "QuantileNoiseEstimator",
    "spectral_flatness",
    "spectral_difference",
]

QUANTILE = 0.25
SIMULT = 3
END_STARTUP_LONG = 200
FACTOR = 40.0
WIDTH = 0.01
SPECT_FL_TAVG = 0.30
SPECT_DIFF_TAVG = 0.30

_INITIAL_LOG_QUANTILE = 8.0
_INITIAL_DENSITY = 0.3


@dataclass(frozen=True)
class FeatureExtractionParams:
    """Settings for turning feature histograms into prior-model thresholds."""

    # bin sizes of the histograms
    bin_size_lrt: float = 0.1
    bin_size_spec_flat: float = 0.05
    bin_size_spec_diff: float = 0.1
    # range of the histogram over which the LRT threshold is averaged
    range_avg_hist_lrt: float = 1.0
    # scale applied to dominant histogram peaks to obtain thresholds
    factor1_model_pars: float = 1.20
    factor2_model_pars: float = 0.9
    # peak limit for spectral flatness
    thres_pos_spec_flat: float = 0.6
    # limit on spacing of the two highest peaks
    limit_peak_spacing_spec_flat: float = 2 * 0.05
    limit_peak_spacing_spec_diff: float = 2 * 0.1
    # limit on relevance of the second peak
    limit_peak_weights_spec_flat: float = 0.5
    limit_peak_weights_spec_diff: float = 0.5
    # fluctuation limit of the LRT feature
    thres_fluct_lrt: float = 0.05
    # bounds for the feature thresholds
    max_lrt: float = 1.0
    min_lrt: float = 0.20
    max_spec_flat: float = 0.95
    min_spec_flat: float = 0.10
    max_spec_diff: float = 1.0
    min_spec_diff: float = 0.16
    # weight a histogram peak needs for its feature to be used
    thres_weight_spec_flat: int = 0
    thres_weight_spec_diff: int = 0

    @classmethod
    def for_window(cls, update_window: int) -> FeatureExtractionParams:
        """Default settings for histograms gathered over ``update_window`` frames."""
        if update_window < 0:
            raise ValueError("update window must not be negative")
        weight = int(0.3 * update_window)
        return cls(thres_weight_spec_flat=weight, thres_weight_spec_diff=weight)


class QuantileNoiseEstimator:
    """Tracks the noise spectrum as a running quantile of log magnitudes.

    Several estimates run staggered in time; each publishes its quantile
    when its counter completes a cycle.
    """

    def __init__(self, magn_len: int) -> None:
        if magn_len < 1:
            raise ValueError("magnitude spectrum needs at least one bin")
        self.magn_len = magn_len
        self._lquantile = [[_INITIAL_LOG_QUANTILE] * magn_len for _ in range(SIMULT)]
        self._density = [[_INITIAL_DENSITY] * magn_len for _ in range(SIMULT)]
        self._quantile = [0.0] * magn_len
        self.counters = [
            math.floor(END_STARTUP_LONG * (s + 1) / SIMULT) for s in range(SIMULT)
        ]
        self.updates = 0

    def estimate(self, magn: Sequence[float]) -> list[float]:
        """Feed one magnitude spectrum and return the current noise estimate."""
        if len(magn) != self.magn_len:
            raise ValueError(f"expected {self.magn_len} bins, got {len(magn)}")
        if any(m <= 0 for m in magn):
            raise ValueError("magnitudes must be positive")

        if self.updates < END_STARTUP_LONG:
            self.updates += 1

        lmagn = [math.log(m) for m in magn]

        for s, (lquantile, density) in enumerate(zip(self._lquantile, self._density)):
            count = self.counters[s]
            for i, lm in enumerate(lmagn):
                delta = FACTOR / density[i] if density[i] > 1.0 else FACTOR
                if lm > lquantile[i]:
                    lquantile[i] += QUANTILE * delta / (count + 1)
                else:
                    lquantile[i] -= (1.0 - QUANTILE) * delta / (count + 1)
                if abs(lm - lquantile[i]) < WIDTH:
                    density[i] = (count * density[i] + 1.0 / (2.0 * WIDTH)) / (count + 1)

            if count >= END_STARTUP_LONG:
                self.counters[s] = 0
                if self.updates >= END_STARTUP_LONG:
                    self._quantile = [math.exp(v) for v in lquantile]
            self.counters[s] += 1

        if self.updates < END_STARTUP_LONG:
            # During startup the last estimate gives a non-zero noise level.
            self._quantile = [math.exp(v) for v in self._lquantile[-1]]

        return list(self._quantile)


def spectral_flatness(magn: Sequence[float], sum_magn: float, previous: float) -> float:
    """Return the time-averaged spectral flatness after one more spectrum.

    The lowest bin is left out of the measure. A zero bin decays the
    feature instead of updating it.
    """
    if not magn:
        raise ValueError("magnitude spectrum must not be empty")
    magn_len = len(magn)
    denominator = sum_magn - magn[0]
    numerator = 0.0
    for m in magn[1:]:
        if m <= 0.0:
            return previous - SPECT_FL_TAVG * previous
        numerator += math.log(m)
    denominator /= magn_len
    numerator /= magn_len
    ratio = math.exp(numerator) / denominator
    return previous + SPECT_FL_TAVG * (ratio - previous)


def spectral_difference(
    magn: Sequence[float],
    magn_avg_pause: Sequence[float],
    sum_magn: float,
    normalization: float,
    previous: float,
) -> float:
    """Return the time-averaged difference between a spectrum and the pause template.

    The difference is ``var(magn) - cov(magn, pause)**2 / var(pause)``,
    divided by ``normalization``.
    """
    if not magn:
        raise ValueError("magnitude spectrum must not be empty")
    if len(magn) != len(magn_avg_pause):
        raise ValueError("spectrum and pause template differ in length")
    n = float(len(magn))
    avg_pause = sum(magn_avg_pause) / n
    avg_magn = sum_magn / n

    cov = 0.0
    var_pause = 0.0
    var_magn = 0.0
    for m, p in zip(magn, magn_avg_pause):
        dm = m - avg_magn
        dp = p - avg_pause
        cov += dm * dp
        var_pause += dp * dp
        var_magn += dm * dm
    cov /= n
    var_pause /= n
    var_magn /= n

    diff = var_magn - (cov * cov) / (var_pause + 0.0001)
    diff /= normalization + 0.0001
    return previous + SPECT_DIFF_TAVG * (diff - previous)