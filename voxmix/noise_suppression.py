"""Single-channel noise suppression on 10 ms frames of 16-bit PCM."""

from __future__ import annotations

import math
from collections.abc import Sequence
from enum import IntEnum

from voxmix.fft import Fft4g
from voxmix.ns_model import QuantileNoiseEstimator, spectral_difference, spectral_flatness
from voxmix.ns_prior import PriorModel

__all__ = ["Policy", "NoiseSuppressor", "AudioDenoiser"]

END_STARTUP_SHORT = 50
END_STARTUP_LONG = 200
DD_PR_SNR = 0.98
NOISE_UPDATE = 0.90
SPEECH_UPDATE = 0.99
PROB_RANGE = 0.20
GAMMA_PAUSE = 0.05
B_LIM = 0.5
MODEL_UPDATE_WINDOW = 500

_START_BAND = 5
_WORD16_MIN = -32768
_WORD16_MAX = 32767

# sample rate -> (samples per 10 ms frame, analysis length)
_RATE_LAYOUT = {8000: (80, 128), 16000: (160, 256), 32000: (160, 256)}


class Policy(IntEnum):
    """Aggressiveness of the suppression."""

    MILD = 0
    MEDIUM = 1
    AGGRESSIVE = 2
    VERY_AGGRESSIVE = 3


# policy -> (overdrive, denoise bound, apply gain map)
_POLICY_SETTINGS = {
    Policy.MILD: (1.0, 0.5, False),
    Policy.MEDIUM: (1.0, 0.25, True),
    Policy.AGGRESSIVE: (1.1, 0.125, True),
    Policy.VERY_AGGRESSIVE: (1.25, 0.09, True),
}


def _to_int16(values: Sequence[float]) -> list[int]:
    return [int(min(max(v, _WORD16_MIN), _WORD16_MAX)) for v in values]


class NoiseSuppressor:
    """Suppresses stationary noise frame by frame.

    ``window`` is the analysis/synthesis window: 128 values at 8 kHz,
    256 at 16 and 32 kHz. At 32 kHz the upper band must be passed as
    well; it receives a time-domain gain derived from the lower band.
    """

    def __init__(self, sample_rate: int, window: Sequence[float]) -> None:
        if sample_rate not in _RATE_LAYOUT:
            raise ValueError(
                f"unsupported sample rate {sample_rate}; use 8000, 16000 or 32000"
            )
        self.sample_rate = sample_rate
        self.block_len, self.ana_len = _RATE_LAYOUT[sample_rate]
        self.window = tuple(float(w) for w in window)
        if len(self.window) != self.ana_len:
            raise ValueError(
                f"window for {sample_rate} Hz needs {self.ana_len} values, "
                f"got {len(self.window)}"
            )
        self.magn_len = self.ana_len // 2 + 1
        n = self.magn_len

        self._fft = Fft4g()
        self._data_buf = [0.0] * self.ana_len
        self._data_buf_hb = [0.0] * self.ana_len
        self._synt_buf = [0.0] * self.ana_len

        self._noise_estimator = QuantileNoiseEstimator(n)
        self._prior = PriorModel(MODEL_UPDATE_WINDOW, n)

        self._smooth = [1.0] * n
        self._magn_prev = [0.0] * n
        self._noise_prev = [0.0] * n
        self._magn_avg_pause = [0.0] * n
        self._init_magn_est = [0.0] * n

        self._block_ind = -1
        self._update_counter = MODEL_UPDATE_WINDOW
        self._spec_flat = 0.5
        self._spec_diff = 0.5
        self._diff_norm = 0.0
        self._energy_sum = 0.0
        self._white_noise_level = 0.0
        self._pink_noise_numerator = 0.0
        self._pink_noise_exp = 0.0

        self.set_policy(Policy.MILD)

    def set_policy(self, mode: int) -> None:
        """Select how aggressively noise is removed."""
        try:
            policy = Policy(mode)
        except ValueError:
            raise ValueError(f"policy must be between 0 and 3, got {mode}") from None
        self.policy = policy
        self.overdrive, self.denoise_bound, self.gainmap = _POLICY_SETTINGS[policy]

    def prior_speech_probability(self) -> float:
        """Frequency-independent prior probability of speech in the last frame."""
        return self._prior.prior_speech_prob

    def _frame(self, frame: Sequence[int], name: str) -> list[float]:
        data = [float(s) for s in frame]
        if len(data) != self.block_len:
            raise ValueError(
                f"{name} needs {self.block_len} samples at {self.sample_rate} Hz, "
                f"got {len(data)}"
            )
        return data

    def process(
        self, frame: Sequence[int], frame_high: Sequence[int] | None = None
    ) -> tuple[list[int], list[int] | None]:
        """Suppress noise in one 10 ms frame.

        Returns the processed lower band and, at 32 kHz, the processed
        upper band; otherwise the second item is None.
        """
        high_band = self.sample_rate == 32000
        if high_band and frame_high is None:
            raise ValueError("the upper band frame is required at 32000 Hz")

        block = self.block_len
        fin = self._frame(frame, "frame")
        self._data_buf = self._data_buf[block:] + fin
        if high_band:
            fin_hb = self._frame(frame_high, "frame_high")
            self._data_buf_hb = self._data_buf_hb[block:] + fin_hb

        win_data = [w * d for w, d in zip(self.window, self._data_buf)]
        energy1 = sum(x * x for x in win_data)
        if energy1 == 0.0:
            # Silent input: leave all statistics untouched.
            fout = self._shift_synthesis()
            out_hb = _to_int16(self._data_buf_hb[:block]) if high_band else None
            return _to_int16(fout), out_hb

        self._block_ind += 1
        ind = self._block_ind
        n = self.magn_len
        last = n - 1
        startup = ind < END_STARTUP_SHORT

        self._fft.rdft(win_data, 1)

        real = [0.0] * n
        imag = [0.0] * n
        magn = [0.0] * n
        real[0] = win_data[0]
        magn[0] = abs(real[0]) + 1.0
        real[last] = win_data[1]
        magn[last] = abs(real[last]) + 1.0
        signal_energy = real[0] * real[0] + real[last] * real[last]
        sum_magn = magn[0] + magn[last]

        sum_log_i = sum_log_i_square = sum_log_magn = sum_log_i_log_magn = 0.0
        if startup:
            self._init_magn_est[0] += magn[0]
            self._init_magn_est[last] += magn[last]
            log_i = math.log(last)
            log_m = math.log(magn[last])
            sum_log_i = log_i
            sum_log_i_square = log_i * log_i
            sum_log_magn = log_m
            sum_log_i_log_magn = log_i * log_m

        for i in range(1, last):
            real[i] = win_data[2 * i]
            imag[i] = win_data[2 * i + 1]
            power = real[i] * real[i] + imag[i] * imag[i]
            signal_energy += power
            magn[i] = math.sqrt(power) + 1.0
            sum_magn += magn[i]
            if startup:
                self._init_magn_est[i] += magn[i]
                if i >= _START_BAND:
                    log_i = math.log(i)
                    log_m = math.log(magn[i])
                    sum_log_i += log_i
                    sum_log_i_square += log_i * log_i
                    sum_log_magn += log_m
                    sum_log_i_log_magn += log_i * log_m
        signal_energy /= n

        self._spec_flat = spectral_flatness(magn, sum_magn, self._spec_flat)
        noise = self._noise_estimator.estimate(magn)

        filter_tmp: list[float] = []
        if startup:
            filter_tmp = self._startup_noise_model(
                noise, sum_magn, sum_log_i, sum_log_i_square, sum_log_magn,
                sum_log_i_log_magn,
            )

        if ind < END_STARTUP_LONG:
            self._diff_norm = (self._diff_norm * ind + signal_energy) / (ind + 1)

        # Step 1: prior and posterior SNR from the quantile noise estimate.
        snr_post = [
            m / (nz + 0.0001) - 1.0 if m > nz else 0.0 for m, nz in zip(magn, noise)
        ]
        previous_estimate = [
            mp / (np_ + 0.0001) * s
            for mp, np_, s in zip(self._magn_prev, self._noise_prev, self._smooth)
        ]
        snr_prior = [
            DD_PR_SNR * pe + (1.0 - DD_PR_SNR) * post
            for pe, post in zip(previous_estimate, snr_post)
        ]

        # Step 2: speech/noise likelihood.
        self._spec_diff = spectral_difference(
            magn, self._magn_avg_pause, sum_magn, self._diff_norm, self._spec_diff
        )
        self._energy_sum += signal_energy
        self._update_model_parameters()
        prob_speech = self._prior.speech_probability(
            snr_prior, snr_post, self._spec_flat, self._spec_diff
        )
        self._update_noise(magn, noise, prob_speech)

        # Step 3: decision-directed gain filter on the updated noise.
        the_filter = []
        for m, nz, pe in zip(magn, noise, previous_estimate):
            current = m / (nz + 0.0001) - 1.0 if m > nz else 0.0
            prior = DD_PR_SNR * pe + (1.0 - DD_PR_SNR) * current
            the_filter.append(prior / (self.overdrive + prior))

        bound = self.denoise_bound
        for i in range(n):
            gain = min(max(the_filter[i], bound), 1.0)
            if startup:
                tmp = min(max(filter_tmp[i], bound), 1.0)
                gain = (gain * ind + tmp * (END_STARTUP_SHORT - ind)) / END_STARTUP_SHORT
            self._smooth[i] = gain
            real[i] *= gain
            imag[i] *= gain

        self._noise_prev = list(noise)
        self._magn_prev = magn

        win_data[0] = real[0]
        win_data[1] = real[last]
        for i in range(1, last):
            win_data[2 * i] = real[i]
            win_data[2 * i + 1] = imag[i]
        self._fft.rdft(win_data, -1)
        time_data = [2.0 * x / self.ana_len for x in win_data]

        factor = self._gain_factor(time_data, energy1)
        self._synt_buf = [
            s + factor * w * x for s, w, x in zip(self._synt_buf, self.window, time_data)
        ]
        fout = self._shift_synthesis()

        out_hb = self._process_high_band(prob_speech) if high_band else None
        return _to_int16(fout), out_hb

    def _shift_synthesis(self) -> list[float]:
        block = self.block_len
        fout = self._synt_buf[:block]
        self._synt_buf = self._synt_buf[block:] + [0.0] * block
        return fout

    def _startup_noise_model(
        self,
        noise: list[float],
        sum_magn: float,
        sum_log_i: float,
        sum_log_i_square: float,
        sum_log_magn: float,
        sum_log_i_log_magn: float,
    ) -> list[float]:
        """Blend a white/pink parametric noise model into ``noise`` during startup."""
        ind = self._block_ind
        n = self.magn_len
        bands = float(n - _START_BAND)

        self._white_noise_level += sum_magn / n * self.overdrive
        denom = sum_log_i_square * bands - sum_log_i * sum_log_i
        numerator = (sum_log_i_square * sum_log_magn - sum_log_i * sum_log_i_log_magn) / denom
        self._pink_noise_numerator += max(numerator, 0.0)
        exponent = (sum_log_i * sum_log_magn - bands * sum_log_i_log_magn) / denom
        self._pink_noise_exp += min(max(exponent, 0.0), 1.0)

        parametric_num = 0.0
        parametric_exp = 0.0
        if self._pink_noise_exp == 0.0:
            parametric_noise = self._white_noise_level
        else:
            parametric_num = math.exp(self._pink_noise_numerator / (ind + 1)) * (ind + 1)
            parametric_exp = self._pink_noise_exp / (ind + 1)
            parametric_noise = parametric_num / _START_BAND**parametric_exp

        filter_tmp = []
        for i in range(n):
            if self._pink_noise_exp > 0.0 and i >= _START_BAND:
                parametric_noise = parametric_num / i**parametric_exp
            est = self._init_magn_est[i]
            filter_tmp.append((est - self.overdrive * parametric_noise) / (est + 0.0001))
            modeled = parametric_noise * (END_STARTUP_SHORT - ind) / (ind + 1)
            noise[i] = (noise[i] * ind + modeled) / END_STARTUP_SHORT
        return filter_tmp

    def _update_model_parameters(self) -> None:
        self._update_counter -= 1
        if self._update_counter > 0:
            self._prior.update_histograms(
                self._prior.lrt_feature, self._spec_flat, self._spec_diff
            )
        if self._update_counter == 0:
            self._prior.extract_parameters(reset_histograms=True)
            self._update_counter = MODEL_UPDATE_WINDOW
            # normalization of the spectral difference for the next window
            self._energy_sum /= MODEL_UPDATE_WINDOW
            self._diff_norm = 0.5 * (self._energy_sum + self._diff_norm)
            self._energy_sum = 0.0

    def _update_noise(
        self, magn: list[float], noise: list[float], prob_speech: list[float]
    ) -> None:
        gamma = NOISE_UPDATE
        for i, (m, prev, p_speech) in enumerate(zip(magn, self._noise_prev, prob_speech)):
            p_noise = 1.0 - p_speech
            target = p_noise * m + p_speech * prev
            candidate = gamma * prev + (1.0 - gamma) * target
            gamma_old = gamma
            gamma = SPEECH_UPDATE if p_speech > PROB_RANGE else NOISE_UPDATE
            if p_speech < PROB_RANGE:
                self._magn_avg_pause[i] += GAMMA_PAUSE * (m - self._magn_avg_pause[i])
            if gamma == gamma_old:
                noise[i] = candidate
            else:
                # a downward update is always safe
                noise[i] = min(gamma * prev + (1.0 - gamma) * target, candidate)

    def _gain_factor(self, time_data: list[float], energy1: float) -> float:
        if not self.gainmap or self._block_ind <= END_STARTUP_LONG:
            return 1.0
        energy2 = sum(x * x for x in time_data)
        gain = math.sqrt(energy2 / (energy1 + 1.0))
        factor1 = factor2 = 1.0
        if gain > B_LIM:
            factor1 = 1.0 + 1.3 * (gain - B_LIM)
            if gain * factor1 > 1.0:
                factor1 = 1.0 / gain
        if gain < B_LIM:
            # pauses are attenuated by the flooring, not by this scale
            gain = max(gain, self.denoise_bound)
            factor2 = 1.0 - 0.3 * (B_LIM - gain)
        prob = self._prior.prior_speech_prob
        return prob * factor1 + (1.0 - prob) * factor2

    def _process_high_band(self, prob_speech: list[float]) -> list[int]:
        n = self.magn_len
        delta = n // 4
        span = slice(n - delta - 1, n - 1)
        avg_prob = sum(prob_speech[span]) / delta
        avg_gain = sum(self._smooth[span]) / delta
        gain_mod = 0.5 * (1.0 + math.tanh(2.0 * avg_prob - 1.0))
        if avg_prob >= 0.5:
            gain = 0.25 * gain_mod + 0.75 * avg_gain
        else:
            gain = 0.5 * gain_mod + 0.5 * avg_gain
        gain = min(max(gain, self.denoise_bound), 1.0)
        return _to_int16([gain * x for x in self._data_buf_hb[: self.block_len]])


class AudioDenoiser:
    """Aggressive noise suppression over 20 ms chunks made of two 10 ms frames."""

    FRAMES_PER_CALL = 2

    def __init__(self, sample_rate: int, window: Sequence[float]) -> None:
        self.suppressor = NoiseSuppressor(sample_rate, window)
        self.suppressor.set_policy(Policy.AGGRESSIVE)

    def process(self, samples: Sequence[int]) -> list[int]:
        """Denoise one chunk and return the processed samples."""
        data = list(samples)
        block = self.suppressor.block_len
        expected = block * self.FRAMES_PER_CALL
        if len(data) != expected:
            raise ValueError(f"expected {expected} samples, got {len(data)}")
        out: list[int] = []
        for start in range(0, expected, block):
            low, _ = self.suppressor.process(data[start : start + block])
            out.extend(low)
        return out