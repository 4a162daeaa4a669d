import pytest
from hypothesis import given
from hypothesis import strategies as st

from dovikit.bitstream import BitReader, BitWriter
from dovikit.header import RpuDataHeader
from dovikit.nlq import RpuDataNlq


def _header(coefficient_data_type=0, nlq_method_idc=0, nlq_num_pivots_minus2=0):
    return RpuDataHeader(
        coefficient_data_type=coefficient_data_type,
        coefficient_log2_denom=23,
        el_bit_depth_minus8=2,
        nlq_method_idc=nlq_method_idc,
        nlq_num_pivots_minus2=nlq_num_pivots_minus2,
    )


def _round_trip(nlq, header):
    writer = BitWriter()
    nlq.write(writer, header)
    return RpuDataNlq.parse(BitReader(writer.as_bytes()), header)


def _sample():
    return RpuDataNlq(
        num_nlq_param_predictors=[[0, 0, 0]],
        nlq_param_pred_flag=[[False, False, False]],
        nlq_offset=[[100, 512, 1023]],
        vdr_in_max_int=[[1, 2, 3]],
        vdr_in_max=[[4096, 8191, 1]],
        linear_deadzone_slope_int=[[0, 4, 7]],
        linear_deadzone_slope=[[12345, 0, 99]],
        linear_deadzone_threshold_int=[[0, 4, 7]],
        linear_deadzone_threshold=[[777, 65536, 3]],
    )


def test_round_trip_linear_deadzone():
    nlq = _sample()
    parsed = _round_trip(nlq, _header())
    assert parsed.nlq_offset == nlq.nlq_offset
    assert parsed.vdr_in_max_int == nlq.vdr_in_max_int
    assert parsed.vdr_in_max == nlq.vdr_in_max
    assert parsed.linear_deadzone_slope_int == nlq.linear_deadzone_slope_int
    assert parsed.linear_deadzone_slope == nlq.linear_deadzone_slope
    assert parsed.linear_deadzone_threshold_int == nlq.linear_deadzone_threshold_int
    assert parsed.linear_deadzone_threshold == nlq.linear_deadzone_threshold
    assert parsed.nlq_param_pred_flag == [[False, False, False]]
    assert parsed.diff_pred_part_idx_nlq_minus1 == []


def test_threshold_int_is_written_from_slope_int():
    nlq = _sample()
    nlq.linear_deadzone_threshold_int = [[9, 9, 9]]
    parsed = _round_trip(nlq, _header())
    assert parsed.linear_deadzone_threshold_int == nlq.linear_deadzone_slope_int


@given(
    offsets=st.lists(st.integers(0, 1023), min_size=3, max_size=3),
    ints=st.lists(st.integers(0, 5000), min_size=3, max_size=3),
    fracs=st.lists(st.integers(0, 2**23 - 1), min_size=3, max_size=3),
    dz_ints=st.lists(st.integers(0, 5000), min_size=3, max_size=3),
)
def test_round_trip_property(offsets, ints, fracs, dz_ints):
    nlq = RpuDataNlq(
        num_nlq_param_predictors=[[0, 0, 0]],
        nlq_param_pred_flag=[[False, False, False]],
        nlq_offset=[offsets],
        vdr_in_max_int=[ints],
        vdr_in_max=[fracs],
        linear_deadzone_slope_int=[dz_ints],
        linear_deadzone_slope=[fracs[::-1]],
        linear_deadzone_threshold_int=[list(dz_ints)],
        linear_deadzone_threshold=[fracs],
    )
    parsed = _round_trip(nlq, _header())
    assert parsed.nlq_offset == [offsets]
    assert parsed.vdr_in_max_int == [ints]
    assert parsed.vdr_in_max == [fracs]
    assert parsed.linear_deadzone_slope == [fracs[::-1]]
    assert parsed.linear_deadzone_threshold_int == [dz_ints]


def test_mel_default_float_coefficients_is_all_zero_bits():
    writer = BitWriter()
    RpuDataNlq.mel_default().write(writer, _header(coefficient_data_type=1, nlq_method_idc=1))
    assert writer.as_bytes() == b"\x00" * 16


def test_parse_float_coefficients_has_no_integer_parts():
    header = _header(coefficient_data_type=1)
    parsed = _round_trip(RpuDataNlq.mel_default(), header)
    assert parsed.vdr_in_max_int == []
    assert parsed.linear_deadzone_slope_int == []
    assert parsed.linear_deadzone_slope == [[0, 0, 0]]


def test_parse_without_linear_deadzone_leaves_deadzone_empty():
    parsed = _round_trip(RpuDataNlq.mel_default(), _header(nlq_method_idc=1))
    assert parsed.linear_deadzone_slope == []
    assert parsed.linear_deadzone_threshold == []
    assert parsed.vdr_in_max_int == [[1, 1, 1]]
    assert parsed.is_mel()


def test_mel_default_is_mel():
    assert RpuDataNlq.mel_default().is_mel()
    assert RpuDataNlq.mel_default().vdr_in_max_int == [[1, 1, 1]]


def test_sample_is_not_mel_until_converted():
    nlq = _sample()
    assert not nlq.is_mel()
    nlq.convert_to_mel()
    assert nlq.is_mel()
    assert nlq.nlq_offset == [[0, 0, 0]]
    assert nlq.vdr_in_max_int == [[1, 1, 1]]
    assert nlq.linear_deadzone_threshold == [[0, 0, 0]]


def test_single_nonzero_offset_breaks_mel():
    nlq = RpuDataNlq.mel_default()
    nlq.nlq_offset[0][2] = 1
    assert not nlq.is_mel()


def test_parse_requires_nlq_pivots():
    header = _header(nlq_num_pivots_minus2=None)
    with pytest.raises(ValueError, match="profile 7"):
        RpuDataNlq.parse(BitReader(b"\xff" * 16), header)


def test_write_requires_nlq_pivots():
    with pytest.raises(ValueError, match="profile 7"):
        RpuDataNlq.mel_default().write(BitWriter(), _header(nlq_num_pivots_minus2=None))


def test_invalid_coefficient_data_type():
    header = _header(coefficient_data_type=2)
    with pytest.raises(ValueError, match="coefficient_data_type"):
        RpuDataNlq.parse(BitReader(b"\xff" * 16), header)
    with pytest.raises(ValueError, match="coefficient_data_type"):
        RpuDataNlq.mel_default().write(BitWriter(), header)