"""Prior speech/noise model: feature histograms, thresholds and speech probability."""

from __future__ import annotations

import math
from collections.abc import Sequence

from voxmix.ns_model import FeatureExtractionParams

__all__ = ["PriorModel", "HIST_PAR_EST"]

HIST_PAR_EST = 1000
LRT_TAVG = 0.50
PRIOR_UPDATE = 0.10
WIDTH_PR_MAP = 4.0
LRT_FEATURE_THR = 0.5
SF_FEATURE_THR = 0.5

_MAX_EXP_ARG = 700.0


def _add_to_histogram(hist: list[int], value: float, bin_size: float) -> None:
    if 0.0 <= value < HIST_PAR_EST * bin_size:
        hist[min(int(value / bin_size), HIST_PAR_EST - 1)] += 1


def _two_peaks(hist: Sequence[int], bin_size: float) -> tuple[float, int, float, int]:
    """Return position and weight of the highest and second-highest bins."""
    max1 = max2 = 0
    pos1 = pos2 = 0.0
    for i, count in enumerate(hist):
        bin_mid = (i + 0.5) * bin_size
        if count > max1:
            max2, pos2 = max1, pos1
            max1, pos1 = count, bin_mid
        elif count > max2:
            max2, pos2 = count, bin_mid
    return pos1, max1, pos2, max2


def _sigmoid(width: float, x: float) -> float:
    return 0.5 * (math.tanh(width * x) + 1.0)


class PriorModel:
    """Combines LRT, spectral flatness and spectral difference into a speech probability.

    Feature values are gathered into histograms over ``update_window``
    frames; :meth:`extract_parameters` turns them into thresholds and
    weights for the sigmoid indicator functions.
    """

    def __init__(self, update_window: int, magn_len: int) -> None:
        if update_window < 1:
            raise ValueError("update window must be at least one frame")
        if magn_len < 1:
            raise ValueError("magnitude spectrum needs at least one bin")
        self.update_window = update_window
        self.magn_len = magn_len
        self.params = FeatureExtractionParams.for_window(update_window)

        self.hist_lrt = [0] * HIST_PAR_EST
        self.hist_spec_flat = [0] * HIST_PAR_EST
        self.hist_spec_diff = [0] * HIST_PAR_EST

        self.lrt_threshold = LRT_FEATURE_THR
        self.spec_flat_threshold = 0.5
        self.sgn_map = 1
        self.spec_diff_threshold = 0.5
        self.weight_lrt = 1.0
        self.weight_spec_flat = 0.0
        self.weight_spec_diff = 0.0

        self.log_lrt_time_avg = [LRT_FEATURE_THR] * magn_len
        self.lrt_feature = LRT_FEATURE_THR
        self.prior_speech_prob = 0.5

    def update_histograms(self, lrt: float, spec_flat: float, spec_diff: float) -> None:
        """Count one frame's feature values into the histograms."""
        p = self.params
        _add_to_histogram(self.hist_lrt, lrt, p.bin_size_lrt)
        _add_to_histogram(self.hist_spec_flat, spec_flat, p.bin_size_spec_flat)
        _add_to_histogram(self.hist_spec_diff, spec_diff, p.bin_size_spec_diff)

    def extract_parameters(self, reset_histograms: bool) -> None:
        """Derive feature thresholds and weights from the gathered histograms."""
        p = self.params

        avg_hist_lrt = 0.0
        avg_hist_lrt_compl = 0.0
        avg_square_hist_lrt = 0.0
        num_hist_lrt = 0
        for i, count in enumerate(self.hist_lrt):
            bin_mid = (i + 0.5) * p.bin_size_lrt
            if bin_mid <= p.range_avg_hist_lrt:
                avg_hist_lrt += count * bin_mid
                num_hist_lrt += count
            avg_square_hist_lrt += count * bin_mid * bin_mid
            avg_hist_lrt_compl += count * bin_mid
        if num_hist_lrt > 0:
            avg_hist_lrt /= num_hist_lrt
        avg_hist_lrt_compl /= self.update_window
        avg_square_hist_lrt /= self.update_window
        fluct_lrt = avg_square_hist_lrt - avg_hist_lrt * avg_hist_lrt_compl

        if fluct_lrt < p.thres_fluct_lrt:
            # very low fluctuation: most likely noise
            self.lrt_threshold = p.max_lrt
        else:
            self.lrt_threshold = min(
                max(p.factor1_model_pars * avg_hist_lrt, p.min_lrt), p.max_lrt
            )

        pos1_flat, weight1_flat, pos2_flat, weight2_flat = _two_peaks(
            self.hist_spec_flat, p.bin_size_spec_flat
        )
        pos1_diff, weight1_diff, pos2_diff, weight2_diff = _two_peaks(
            self.hist_spec_diff, p.bin_size_spec_diff
        )

        use_spec_flat = True
        if (
            abs(pos2_flat - pos1_flat) < p.limit_peak_spacing_spec_flat
            and weight2_flat > p.limit_peak_weights_spec_flat * weight1_flat
        ):
            weight1_flat += weight2_flat
            pos1_flat = 0.5 * (pos1_flat + pos2_flat)
        if weight1_flat < p.thres_weight_spec_flat or pos1_flat < p.thres_pos_spec_flat:
            use_spec_flat = False
        if use_spec_flat:
            self.spec_flat_threshold = min(
                max(p.factor2_model_pars * pos1_flat, p.min_spec_flat), p.max_spec_flat
            )

        use_spec_diff = True
        if (
            abs(pos2_diff - pos1_diff) < p.limit_peak_spacing_spec_diff
            and weight2_diff > p.limit_peak_weights_spec_diff * weight1_diff
        ):
            weight1_diff += weight2_diff
            pos1_diff = 0.5 * (pos1_diff + pos2_diff)
        if weight1_diff < p.thres_weight_spec_diff:
            use_spec_diff = False
        self.spec_diff_threshold = min(
            max(p.factor1_model_pars * pos1_diff, p.min_spec_diff), p.max_spec_diff
        )
        if fluct_lrt < p.thres_fluct_lrt:
            use_spec_diff = False

        feature_sum = 1.0 + use_spec_flat + use_spec_diff
        self.weight_lrt = 1.0 / feature_sum
        self.weight_spec_flat = use_spec_flat / feature_sum
        self.weight_spec_diff = use_spec_diff / feature_sum

        if reset_histograms:
            self.hist_lrt = [0] * HIST_PAR_EST
            self.hist_spec_flat = [0] * HIST_PAR_EST
            self.hist_spec_diff = [0] * HIST_PAR_EST

    def speech_probability(
        self,
        snr_loc_prior: Sequence[float],
        snr_loc_post: Sequence[float],
        spec_flat: float,
        spec_diff: float,
    ) -> list[float]:
        """Update the model with one frame and return the per-bin speech probability."""
        if len(snr_loc_prior) != self.magn_len or len(snr_loc_post) != self.magn_len:
            raise ValueError(f"expected {self.magn_len} bins of prior and post SNR")
        if any(s <= -0.5 for s in snr_loc_prior):
            raise ValueError("prior SNR must be greater than -0.5")

        width0 = WIDTH_PR_MAP
        width_pause = 2.0 * WIDTH_PR_MAP

        total = 0.0
        for i, (prior, post) in enumerate(zip(snr_loc_prior, snr_loc_post)):
            tmp1 = 1.0 + 2.0 * prior
            tmp2 = 2.0 * prior / (tmp1 + 0.0001)
            bessel = (post + 1.0) * tmp2
            self.log_lrt_time_avg[i] += LRT_TAVG * (
                bessel - math.log(tmp1) - self.log_lrt_time_avg[i]
            )
            total += self.log_lrt_time_avg[i]
        lrt_avg = total / self.magn_len
        self.lrt_feature = lrt_avg

        width = width_pause if lrt_avg < self.lrt_threshold else width0
        indicator0 = _sigmoid(width, lrt_avg - self.lrt_threshold)

        width = width0
        if self.sgn_map == 1 and spec_flat > self.spec_flat_threshold:
            width = width_pause
        if self.sgn_map == -1 and spec_flat < self.spec_flat_threshold:
            width = width_pause
        indicator1 = _sigmoid(self.sgn_map * width, self.spec_flat_threshold - spec_flat)

        width = width_pause if spec_diff < self.spec_diff_threshold else width0
        indicator2 = _sigmoid(width, spec_diff - self.spec_diff_threshold)

        ind_prior = (
            self.weight_lrt * indicator0
            + self.weight_spec_flat * indicator1
            + self.weight_spec_diff * indicator2
        )

        self.prior_speech_prob += PRIOR_UPDATE * (ind_prior - self.prior_speech_prob)
        self.prior_speech_prob = min(max(self.prior_speech_prob, 0.01), 1.0)

        gain_prior = (1.0 - self.prior_speech_prob) / (self.prior_speech_prob + 0.0001)
        return [
            1.0 / (1.0 + gain_prior * math.exp(min(-v, _MAX_EXP_ARG)))
            for v in self.log_lrt_time_avg
        ]