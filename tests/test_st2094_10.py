import pytest

from dovikit.bitstream import BitWriter
from dovikit.pq import add_start_code_emulation_prevention_3_byte
from dovikit.st2094_10 import St2094_10CmData, St2094_10DmData, St2094_10ItuT35

T35_START = bytes([0xB5, 0x00, 0x31, 0x47, 0x41, 0x39, 0x34])


def _payload(type_code, writer):
    raw = T35_START + bytes([type_code]) + writer.as_bytes() + b"\xff\xff"
    return add_start_code_emulation_prevention_3_byte(raw)


def _cm_writer(disable_residual):
    w = BitWriter()
    w.write_n(1, 4)  # ccm_profile
    w.write_n(2, 4)  # ccm_level
    w.write_ue(23)
    w.write_ue(2)
    w.write_ue(2)
    w.write_ue(4)
    w.write(disable_residual)
    for _ in range(3):
        w.write_ue(0)
        w.write_n(63, 10)
        w.write_n(1000, 10)
    # component 0: polynomial of order 2
    w.write_ue(0)
    w.write_ue(1)
    for coef_int, coef in ((-1, 123456), (2, 654321), (3, 777777)):
        w.write_se(coef_int)
        w.write_n(coef, 23)
    # component 1: MMR of order 1
    w.write_ue(1)
    w.write_n(0, 2)
    w.write_se(-2)
    w.write_n(4242, 23)
    for j in range(7):
        w.write_se(j - 3)
        w.write_n(1000 + j, 23)
    # component 2: linear polynomial
    w.write_ue(0)
    w.write_ue(0)
    for coef_int, coef in ((1, 99999), (-1, 88888)):
        w.write_se(coef_int)
        w.write_n(coef, 23)
    if not disable_residual:
        for cmp in range(3):
            w.write_n(500 + cmp, 10)
            w.write_ue(1)
            w.write_n(4097, 23)
            w.write_ue(2)
            w.write_n(5000, 23)
            w.write_ue(3)
            w.write_n(6000, 23)
    return w


def test_parse_cm_data_without_residual():
    result = St2094_10ItuT35.parse_itu_t35_dashif(_payload(0x08, _cm_writer(True)))
    meta = result.user_data_type_struct
    assert isinstance(meta, St2094_10CmData)
    assert (meta.ccm_profile, meta.ccm_level) == (1, 2)
    assert meta.coefficient_log2_denom == 23
    assert meta.hdr_bit_depth_minus8 == 4
    assert meta.disable_residual_flag is True
    assert meta.num_pivots_minus2 == [0, 0, 0]
    assert meta.pred_pivot_value == [[63, 1000]] * 3
    assert meta.mapping_idc == [[0], [1], [0]]
    assert meta.poly_order_minus1[0] == [1]
    assert meta.poly_coef_int[0] == [[-1, 2, 3]]
    assert meta.poly_coef[0] == [[123456, 654321, 777777]]
    assert meta.poly_coef_int[2] == [[1, -1]]
    assert meta.poly_coef[2] == [[99999, 88888]]
    assert meta.poly_coef[1] == [[]]
    assert meta.mmr_constant_int[1] == [-2]
    assert meta.mmr_constant[1] == [4242]
    assert meta.mmr_coef_int[1][0][0] == []
    assert meta.mmr_coef_int[1][0][1] == [-3, -2, -1, 0, 1, 2, 3, 0]
    assert meta.mmr_coef[1][0][1] == [1000, 1001, 1002, 1003, 1004, 1005, 1006, 0]
    assert meta.nlq_offset == [0, 0, 0]


def test_parse_cm_data_with_residual():
    meta = St2094_10ItuT35.parse_itu_t35_dashif(
        _payload(0x08, _cm_writer(False))
    ).user_data_type_struct
    assert meta.disable_residual_flag is False
    assert meta.nlq_offset == [500, 501, 502]
    assert meta.hdr_in_max_int == [1, 1, 1]
    assert meta.hdr_in_max == [4097] * 3
    assert meta.linear_deadzone_slope_int == [2, 2, 2]
    assert meta.linear_deadzone_slope == [5000] * 3
    assert meta.linear_deadzone_threshold_int == [3, 3, 3]
    assert meta.linear_deadzone_threshold == [6000] * 3


def test_parse_with_sei_prefix():
    data = bytes([0x4E, 0x01, 0x04, 0x40]) + _payload(0x08, _cm_writer(True))
    meta = St2094_10ItuT35.parse_itu_t35_dashif(data).user_data_type_struct
    assert meta.pred_pivot_value == [[63, 1000]] * 3


def test_parse_dm_data_without_refresh():
    w = BitWriter()
    w.write_ue(1)
    w.write_ue(2)
    w.write(False)
    meta = St2094_10ItuT35.parse_itu_t35_dashif(_payload(0x09, w)).user_data_type_struct
    assert isinstance(meta, St2094_10DmData)
    assert (meta.app_identifier, meta.app_version) == (1, 2)
    assert meta.metadata_refresh_flag is False
    assert meta.dm_data is None


def test_parse_dm_data_keeps_payload_bits():
    w = BitWriter()
    w.write_ue(1)
    w.write_ue(0)
    w.write(True)
    w.write_n(0xAB, 8)
    meta = St2094_10ItuT35.parse_itu_t35_dashif(_payload(0x09, w)).user_data_type_struct
    assert meta.metadata_refresh_flag is True
    assert meta.dm_data.startswith(b"\xab")


def test_validated_trimmed_data_plain():
    data = T35_START + b"\x08\x01"
    assert St2094_10ItuT35.validated_trimmed_data(data) == data


def test_validated_trimmed_data_strips_sei_header():
    data = bytes([0x4E, 0x01, 0x04, 0x20]) + T35_START + b"\x09"
    assert St2094_10ItuT35.validated_trimmed_data(data) == T35_START + b"\x09"


@pytest.mark.parametrize(
    "data",
    [
        b"\x00\x01\x02\x03\x04\x05\x06\x07",
        bytes([0xB5, 0x00, 0x31, 0x47, 0x41, 0x39, 0x35]),
        b"\xb5\x00",
    ],
)
def test_validated_trimmed_data_rejects_bad_start(data):
    with pytest.raises(ValueError, match="start bytes"):
        St2094_10ItuT35.validated_trimmed_data(data)


def test_invalid_user_identifier():
    data = bytes([0x4E, 0x01, 0x04, 0x20, 0xB5, 0x00, 0x31]) + b"XXXX\x08\xff\xff"
    with pytest.raises(ValueError, match="user_identifier"):
        St2094_10ItuT35.parse_itu_t35_dashif(data)


def test_invalid_user_data_type_code():
    data = T35_START + b"\x07\xff\xff\xff"
    with pytest.raises(ValueError, match="user_data_type_code"):
        St2094_10ItuT35.parse_itu_t35_dashif(data)