import math

import pytest
from hypothesis import given, settings
from hypothesis import strategies as st

from voxmix.ns_prior import HIST_PAR_EST, PriorModel

MAGN_LEN = 65


def make_model(window=500):
    return PriorModel(window, MAGN_LEN)


def test_initial_state_matches_defaults():
    model = make_model()
    assert model.prior_speech_prob == 0.5
    assert model.lrt_threshold == 0.5
    assert model.spec_flat_threshold == 0.5
    assert model.spec_diff_threshold == 0.5
    assert (model.weight_lrt, model.weight_spec_flat, model.weight_spec_diff) == (1.0, 0.0, 0.0)
    assert model.log_lrt_time_avg == [0.5] * MAGN_LEN


def test_invalid_construction():
    with pytest.raises(ValueError):
        PriorModel(0, MAGN_LEN)
    with pytest.raises(ValueError):
        PriorModel(500, 0)


def test_update_histograms_counts_each_feature_once():
    model = make_model()
    model.update_histograms(0.25, 0.3, 0.45)
    assert sum(model.hist_lrt) == 1
    assert sum(model.hist_spec_flat) == 1
    assert sum(model.hist_spec_diff) == 1
    assert len(model.hist_lrt) == HIST_PAR_EST


def test_update_histograms_ignores_out_of_range():
    model = make_model()
    model.update_histograms(-0.1, -1.0, 1e9)
    assert sum(model.hist_lrt) == 0
    assert sum(model.hist_spec_flat) == 0
    assert sum(model.hist_spec_diff) == 0


def test_extract_on_empty_histograms_uses_limits():
    model = make_model()
    model.extract_parameters(True)
    assert model.lrt_threshold == model.params.max_lrt
    assert model.spec_diff_threshold == model.params.min_spec_diff
    assert model.weight_lrt == 1.0
    assert model.weight_spec_flat == 0.0
    assert model.weight_spec_diff == 0.0


def test_extract_resets_histograms_only_when_asked():
    model = make_model()
    for _ in range(10):
        model.update_histograms(0.3, 0.7, 0.4)
    model.extract_parameters(False)
    assert sum(model.hist_spec_flat) == 10
    model.extract_parameters(True)
    assert sum(model.hist_lrt) == 0
    assert sum(model.hist_spec_flat) == 0
    assert sum(model.hist_spec_diff) == 0


def test_strong_flatness_peak_enables_feature():
    model = make_model()
    for _ in range(200):
        model.update_histograms(0.5, 0.8, 0.4)
    model.extract_parameters(True)
    assert model.weight_spec_flat > 0.0
    assert model.params.min_spec_flat <= model.spec_flat_threshold <= model.params.max_spec_flat
    total = model.weight_lrt + model.weight_spec_flat + model.weight_spec_diff
    assert math.isclose(total, 1.0)


def test_weak_flatness_peak_is_rejected():
    model = make_model()
    for _ in range(10):
        model.update_histograms(0.5, 0.8, 0.4)
    before = model.spec_flat_threshold
    model.extract_parameters(True)
    assert model.weight_spec_flat == 0.0
    assert model.spec_flat_threshold == before


def test_fluctuating_lrt_threshold_in_range():
    model = PriorModel(20, MAGN_LEN)
    for k in range(20):
        model.update_histograms(0.1 + (k % 10) * 0.9, 0.2, 0.5)
    model.extract_parameters(True)
    assert model.params.min_lrt <= model.lrt_threshold <= model.params.max_lrt
    assert model.params.min_spec_diff <= model.spec_diff_threshold <= model.params.max_spec_diff


def test_speech_probability_lengths_checked():
    model = make_model()
    with pytest.raises(ValueError):
        model.speech_probability([0.0] * 3, [0.0] * MAGN_LEN, 0.5, 0.5)
    with pytest.raises(ValueError):
        model.speech_probability([-1.0] * MAGN_LEN, [0.0] * MAGN_LEN, 0.5, 0.5)


def test_lrt_feature_is_mean_of_smoothed_lrt():
    model = make_model()
    model.speech_probability([2.0] * MAGN_LEN, [3.0] * MAGN_LEN, 0.5, 0.5)
    assert math.isclose(model.lrt_feature, sum(model.log_lrt_time_avg) / MAGN_LEN)


def test_high_snr_gives_higher_probability():
    quiet = make_model()
    loud = make_model()
    p_quiet = quiet.speech_probability([0.0] * MAGN_LEN, [0.0] * MAGN_LEN, 0.5, 0.5)
    p_loud = loud.speech_probability([20.0] * MAGN_LEN, [30.0] * MAGN_LEN, 0.5, 0.5)
    assert all(l > q for l, q in zip(p_loud, p_quiet))


def test_repeated_speech_raises_prior():
    model = make_model()
    for _ in range(30):
        model.speech_probability([20.0] * MAGN_LEN, [30.0] * MAGN_LEN, 0.5, 0.5)
    assert model.prior_speech_prob > 0.5


def test_repeated_silence_lowers_prior_within_floor():
    model = make_model()
    for _ in range(100):
        model.speech_probability([0.0] * MAGN_LEN, [0.0] * MAGN_LEN, 0.5, 0.5)
    assert 0.01 <= model.prior_speech_prob < 0.5


@settings(max_examples=50, deadline=None)
@given(
    st.lists(st.floats(0.0, 1e4), min_size=MAGN_LEN, max_size=MAGN_LEN),
    st.lists(st.floats(0.0, 1e4), min_size=MAGN_LEN, max_size=MAGN_LEN),
    st.floats(0.0, 1.0),
    st.floats(0.0, 5.0),
)
def test_probabilities_stay_in_unit_interval(prior, post, flat, diff):
    model = make_model()
    probs = model.speech_probability(prior, post, flat, diff)
    assert len(probs) == MAGN_LEN
    assert all(0.0 <= p <= 1.0 for p in probs)
    assert 0.01 <= model.prior_speech_prob <= 1.0