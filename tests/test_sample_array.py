import pytest
from hypothesis import given
from hypothesis import strategies as st

from voxmix.sample_array import SIZE_MIX_BUFFER, SampleArray, sys_ts_less, ts_less


def test_ts_less_plain_order():
    assert ts_less(1, 2) is True
    assert ts_less(2, 1) is False
    assert ts_less(5, 5) is False


def test_ts_less_across_wrap():
    assert ts_less(0xFFFFFFFF, 0) is True
    assert ts_less(0, 0xFFFFFFFF) is False


def test_sys_ts_less_wraps_at_48_bits():
    assert sys_ts_less(10, 20) is True
    assert sys_ts_less(20, 10) is False
    assert sys_ts_less(0xFFFFFFFFFFFF, 0) is True


def test_get_before_any_put_is_silence():
    array = SampleArray()
    assert array.get(123, 8) == [0] * 8


def test_put_then_get_returns_data():
    array = SampleArray()
    data = list(range(1, 21))
    array.put(1000, data)
    assert array.get(1000, 20) == data
    assert array.last_ts == 1020


def test_get_past_end_is_zero_padded():
    array = SampleArray()
    array.put(50, [7] * 10)
    assert array.get(55, 10) == [7] * 5 + [0] * 5


def test_get_at_or_after_last_ts_is_silence():
    array = SampleArray()
    array.put(0, [3] * 10)
    assert array.get(10, 4) == [0] * 4


def test_buffer_offset_wraparound():
    array = SampleArray()
    data = list(range(1, 11))
    array.put(SIZE_MIX_BUFFER - 5, data)
    assert array.get(SIZE_MIX_BUFFER - 5, 10) == data


def test_timestamp_wraparound():
    array = SampleArray()
    data = list(range(-5, 5))
    array.put(0xFFFFFFFB, data)
    assert array.get(0xFFFFFFFB, 10) == data
    assert array.last_ts == 5


def test_too_old_put_is_ignored():
    array = SampleArray()
    array.put(100000, [1] * 10)
    old_ts = 100000 - SIZE_MIX_BUFFER - 100
    array.put(old_ts, [9] * 10)
    assert array.last_ts == 100010
    assert array.get(100000, 10) == [1] * 10


def test_forward_jump_drops_old_window():
    array = SampleArray()
    array.put(0, [4] * 10)
    array.put(SIZE_MIX_BUFFER, [6] * 10)
    assert array.get(0, 10) == [0] * 10
    assert array.get(SIZE_MIX_BUFFER, 10) == [6] * 10


def test_clear_range():
    array = SampleArray()
    array.put(0, [5] * 20)
    array.clear(5, 10)
    assert array.get(0, 20) == [5] * 5 + [0] * 5 + [5] * 10


def test_clear_all():
    array = SampleArray()
    array.put(0, [5] * 20)
    array.clear_all()
    assert array.get(0, 20) == [0] * 20


def test_oversized_put_rejected():
    array = SampleArray()
    with pytest.raises(ValueError):
        array.put(0, [0] * (SIZE_MIX_BUFFER + 1))


def test_negative_size_rejected():
    array = SampleArray()
    with pytest.raises(ValueError):
        array.get(0, -1)


@given(
    ts=st.integers(min_value=0, max_value=0xFFFFFFFF),
    data=st.lists(st.integers(min_value=-32768, max_value=32767), min_size=1, max_size=400),
)
def test_round_trip(ts, data):
    array = SampleArray()
    array.put(ts, data)
    assert array.get(ts, len(data)) == data