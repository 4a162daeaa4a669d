from dataclasses import replace

import pytest
from hypothesis import given
from hypothesis import strategies as st

from dovikit.bitstream import BitReader, BitWriter
from dovikit.vdr_dm_data import VdrDmData


class _Payload:
    def __init__(self, valid=True):
        self.valid = valid
        self.written = 0

    def validate(self):
        if not self.valid:
            raise ValueError("bad payload")

    def write(self, writer):
        self.written += 1
        writer.write_n(0xFF, 8)


def _round_trip(data):
    writer = BitWriter()
    data.write(writer)
    return VdrDmData.parse(BitReader(writer.as_bytes()))


def test_default_pq_values():
    data = VdrDmData.default_pq()
    assert data.signal_eotf == 65535
    assert data.signal_bit_depth == 12
    assert data.signal_full_range_flag == 1
    assert data.source_diagonal == 42
    assert data.ycc_to_rgb_coef0 == 0


def test_default_pq_validates():
    VdrDmData.default_pq().validate()
    assert VdrDmData.default_pq().compressed is False


def test_round_trip_default_pq():
    data = VdrDmData.default_pq()
    assert _round_trip(data) == data


def test_round_trip_negative_coefficients():
    data = VdrDmData.default_pq()
    data.set_p81_coeffs()
    parsed = _round_trip(data)
    assert parsed.ycc_to_rgb_coef4 == -1540
    assert parsed.ycc_to_rgb_coef5 == -5348
    assert parsed == data


@given(
    coef=st.integers(min_value=-32768, max_value=32767),
    offset=st.integers(min_value=0, max_value=0xFFFFFFFF),
    ids=st.integers(min_value=0, max_value=1000),
    max_pq=st.integers(min_value=0, max_value=4095),
)
def test_round_trip_property(coef, offset, ids, max_pq):
    data = replace(
        VdrDmData.default_pq(),
        affected_dm_metadata_id=ids,
        current_dm_metadata_id=ids,
        ycc_to_rgb_coef3=coef,
        rgb_to_lms_coef8=coef,
        ycc_to_rgb_offset1=offset,
        source_max_pq=max_pq,
    )
    assert _round_trip(data) == data


def test_compressed_writes_only_ids():
    data = VdrDmData(compressed=True)
    writer = BitWriter()
    data.write(writer)
    assert writer.as_bytes() == b"\xe0"


def test_compressed_longer_uncompressed():
    compressed = BitWriter()
    VdrDmData(compressed=True).write(compressed)
    full = BitWriter()
    VdrDmData().write(full)
    assert len(full.as_bytes()) > len(compressed.as_bytes())


def test_write_appends_payloads():
    first, second = _Payload(), _Payload()
    data = VdrDmData(compressed=True, cmv29_metadata=first, cmv40_metadata=second)
    writer = BitWriter()
    data.write(writer)
    assert (first.written, second.written) == (1, 1)
    assert writer.as_bytes()[-2:] == b"\xff\xff"[:2] or len(writer.as_bytes()) == 3


def test_validate_affected_id_limit():
    data = VdrDmData.default_pq()
    data.affected_dm_metadata_id = 16
    with pytest.raises(ValueError, match="affected_dm_metadata_id"):
        data.validate()


@pytest.mark.parametrize("depth", [7, 17, 0])
def test_validate_bit_depth(depth):
    data = replace(VdrDmData.default_pq(), signal_bit_depth=depth)
    with pytest.raises(ValueError, match="signal_bit_depth"):
        data.validate()


def test_validate_eotf_requires_65535():
    data = replace(VdrDmData.default_pq(), signal_eotf=1)
    with pytest.raises(ValueError, match="signal_eotf"):
        data.validate()


def test_validate_eotf_with_params_allowed():
    data = replace(VdrDmData.default_pq(), signal_eotf=1, signal_eotf_param0=5)
    data.validate()
    assert data.signal_eotf == 1


def test_validate_compressed_skips_signal_checks():
    data = VdrDmData(compressed=True)
    data.validate()
    assert data.signal_bit_depth == 0


def test_validate_calls_payload():
    data = replace(VdrDmData.default_pq(), cmv40_metadata=_Payload(valid=False))
    with pytest.raises(ValueError, match="bad payload"):
        data.validate()


def test_set_scene_cut():
    data = VdrDmData()
    data.set_scene_cut(True)
    assert data.scene_refresh_flag == 1
    data.set_scene_cut(False)
    assert data.scene_refresh_flag == 0


def test_set_p81_coeffs():
    data = replace(VdrDmData.default_pq(), signal_color_space=2)
    data.set_p81_coeffs()
    assert data.signal_color_space == 0
    assert data.ycc_to_rgb_offset0 == 16777216
    assert data.rgb_to_lms_coef8 == 15962
    assert data.ycc_to_rgb_coef7 == 17610