"""Display management data (vdr_dm_data) of a Dolby Vision RPU."""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Optional, Protocol

from .bitstream import BitReader, BitWriter


class DmPayload(Protocol):
    """Content mapping metadata attached to display management data."""

    def validate(self) -> None: ...

    def write(self, writer: BitWriter) -> None: ...


class CmVersion(enum.Enum):
    """Content mapping version of the metadata."""

    V29 = "V29"
    V40 = "V40"


# Fixed-width fields written after the three Exp-Golomb ids: (name, bits, signed)
_FIXED_FIELDS: tuple[tuple[str, int, bool], ...] = (
    *((f"ycc_to_rgb_coef{i}", 16, True) for i in range(9)),
    *((f"ycc_to_rgb_offset{i}", 32, False) for i in range(3)),
    *((f"rgb_to_lms_coef{i}", 16, True) for i in range(9)),
    ("signal_eotf", 16, False),
    ("signal_eotf_param0", 16, False),
    ("signal_eotf_param1", 16, False),
    ("signal_eotf_param2", 32, False),
    ("signal_bit_depth", 5, False),
    ("signal_color_space", 2, False),
    ("signal_chroma_format", 2, False),
    ("signal_full_range_flag", 2, False),
    ("source_min_pq", 12, False),
    ("source_max_pq", 12, False),
    ("source_diagonal", 10, False),
)


def _to_signed(value: int, bits: int) -> int:
    sign_bit = 1 << (bits - 1)
    return value - (1 << bits) if value & sign_bit else value


@dataclass
class VdrDmData:
    """Colour conversion and signal description for display management."""

    compressed: bool = False

    affected_dm_metadata_id: int = 0
    current_dm_metadata_id: int = 0
    scene_refresh_flag: int = 0

    ycc_to_rgb_coef0: int = 0
    ycc_to_rgb_coef1: int = 0
    ycc_to_rgb_coef2: int = 0
    ycc_to_rgb_coef3: int = 0
    ycc_to_rgb_coef4: int = 0
    ycc_to_rgb_coef5: int = 0
    ycc_to_rgb_coef6: int = 0
    ycc_to_rgb_coef7: int = 0
    ycc_to_rgb_coef8: int = 0
    ycc_to_rgb_offset0: int = 0
    ycc_to_rgb_offset1: int = 0
    ycc_to_rgb_offset2: int = 0
    rgb_to_lms_coef0: int = 0
    rgb_to_lms_coef1: int = 0
    rgb_to_lms_coef2: int = 0
    rgb_to_lms_coef3: int = 0
    rgb_to_lms_coef4: int = 0
    rgb_to_lms_coef5: int = 0
    rgb_to_lms_coef6: int = 0
    rgb_to_lms_coef7: int = 0
    rgb_to_lms_coef8: int = 0
    signal_eotf: int = 0
    signal_eotf_param0: int = 0
    signal_eotf_param1: int = 0
    signal_eotf_param2: int = 0
    signal_bit_depth: int = 0
    signal_color_space: int = 0
    signal_chroma_format: int = 0
    signal_full_range_flag: int = 0
    source_min_pq: int = 0
    source_max_pq: int = 0
    source_diagonal: int = 0

    cmv29_metadata: Optional[DmPayload] = None
    cmv40_metadata: Optional[DmPayload] = None

    @classmethod
    def parse(cls, reader: BitReader) -> VdrDmData:
        """Read uncompressed display management data."""
        data = cls(
            affected_dm_metadata_id=reader.get_ue(),
            current_dm_metadata_id=reader.get_ue(),
            scene_refresh_flag=reader.get_ue(),
        )
        for name, bits, signed in _FIXED_FIELDS:
            value = reader.get_n(bits)
            setattr(data, name, _to_signed(value, bits) if signed else value)
        return data

    def validate(self) -> None:
        """Raise ``ValueError`` if the data breaks the format's rules."""
        if self.affected_dm_metadata_id > 15:
            raise ValueError("affected_dm_metadata_id should be <= 15")

        if not self.compressed:
            if not 8 <= self.signal_bit_depth <= 16:
                raise ValueError("signal_bit_depth should be between 8 and 16")
            if (
                self.signal_eotf_param0 == 0
                and self.signal_eotf_param1 == 0
                and self.signal_eotf_param2 == 0
                and self.signal_eotf != 65535
            ):
                raise ValueError("signal_eotf should be 65535")

        for payload in (self.cmv29_metadata, self.cmv40_metadata):
            if payload is not None:
                payload.validate()

    def write(self, writer: BitWriter) -> None:
        """Write the data, followed by any attached content mapping metadata."""
        writer.write_ue(self.affected_dm_metadata_id)
        writer.write_ue(self.current_dm_metadata_id)
        writer.write_ue(self.scene_refresh_flag)

        if not self.compressed:
            for name, bits, _ in _FIXED_FIELDS:
                writer.write_n(getattr(self, name), bits)

        for payload in (self.cmv29_metadata, self.cmv40_metadata):
            if payload is not None:
                payload.write(writer)

    def set_p81_coeffs(self) -> None:
        """Use the profile 8.1 colour conversion coefficients."""
        self.ycc_to_rgb_coef0 = 9574
        self.ycc_to_rgb_coef1 = 0
        self.ycc_to_rgb_coef2 = 13802
        self.ycc_to_rgb_coef3 = 9574
        self.ycc_to_rgb_coef4 = -1540
        self.ycc_to_rgb_coef5 = -5348
        self.ycc_to_rgb_coef6 = 9574
        self.ycc_to_rgb_coef7 = 17610
        self.ycc_to_rgb_coef8 = 0
        self.ycc_to_rgb_offset0 = 16777216
        self.ycc_to_rgb_offset1 = 134217728
        self.ycc_to_rgb_offset2 = 134217728

        self.rgb_to_lms_coef0 = 7222
        self.rgb_to_lms_coef1 = 8771
        self.rgb_to_lms_coef2 = 390
        self.rgb_to_lms_coef3 = 2654
        self.rgb_to_lms_coef4 = 12430
        self.rgb_to_lms_coef5 = 1300
        self.rgb_to_lms_coef6 = 0
        self.rgb_to_lms_coef7 = 422
        self.rgb_to_lms_coef8 = 15962

        self.signal_color_space = 0

    def set_scene_cut(self, is_scene_cut: bool) -> None:
        """Mark or unmark the frame as the start of a scene."""
        self.scene_refresh_flag = int(bool(is_scene_cut))

    @classmethod
    def default_pq(cls) -> VdrDmData:
        """A PQ signal description with zeroed coefficients."""
        return cls(
            signal_eotf=65535,
            signal_bit_depth=12,
            signal_full_range_flag=1,
            source_diagonal=42,
        )