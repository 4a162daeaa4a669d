"""ST 2094-10 metadata carried in ITU-T T.35 SEI messages."""

from __future__ import annotations

from dataclasses import dataclass, field

from .bitstream import BitReader
from .header import NUM_COMPONENTS
from .pq import clear_start_code_emulation_prevention_3_byte

ITU_T_T35_COUNTRY_CODE = 0xB5
ITU_T_T35_PROVIDER_CODE = 0x31
USER_IDENTIFIER = 0x47413934
USER_DATA_TYPE_CM_DATA = 0x08
USER_DATA_TYPE_DM_DATA = 0x09

MAPPING_POLYNOMIAL = 0
MAPPING_MMR = 1

_SEI_PREFIX = (0x4E, 0x01, 0x04)
_T35_START = bytes((0xB5, 0x00, 0x31))
_T35_FULL_START = bytes((0xB5, 0x00, 0x31, 0x47, 0x41, 0x39, 0x34))


def _per_component() -> list[list]:
    return [[] for _ in range(NUM_COMPONENTS)]


def _zeros() -> list[int]:
    return [0] * NUM_COMPONENTS


@dataclass
class St2094_10CmData:
    """Composer (prediction) metadata."""

    ccm_profile: int = 0
    ccm_level: int = 0
    coefficient_log2_denom: int = 0
    bl_bit_depth_minus8: int = 0
    el_bit_depth_minus8: int = 0
    hdr_bit_depth_minus8: int = 0
    disable_residual_flag: bool = False

    num_pivots_minus2: list[int] = field(default_factory=_zeros)
    pred_pivot_value: list[list[int]] = field(default_factory=_per_component)

    mapping_idc: list[list[int]] = field(default_factory=_per_component)
    poly_order_minus1: list[list[int]] = field(default_factory=_per_component)
    poly_coef_int: list[list[list[int]]] = field(default_factory=_per_component)
    poly_coef: list[list[list[int]]] = field(default_factory=_per_component)
    mmr_order_minus1: list[list[int]] = field(default_factory=_per_component)
    mmr_constant_int: list[list[int]] = field(default_factory=_per_component)
    mmr_constant: list[list[int]] = field(default_factory=_per_component)
    mmr_coef_int: list[list[list[list[int]]]] = field(default_factory=_per_component)
    mmr_coef: list[list[list[list[int]]]] = field(default_factory=_per_component)

    nlq_offset: list[int] = field(default_factory=_zeros)
    hdr_in_max_int: list[int] = field(default_factory=_zeros)
    hdr_in_max: list[int] = field(default_factory=_zeros)
    linear_deadzone_slope_int: list[int] = field(default_factory=_zeros)
    linear_deadzone_slope: list[int] = field(default_factory=_zeros)
    linear_deadzone_threshold_int: list[int] = field(default_factory=_zeros)
    linear_deadzone_threshold: list[int] = field(default_factory=_zeros)

    @classmethod
    def parse(cls, reader: BitReader) -> St2094_10CmData:
        """Read composer metadata following the user data type code."""
        meta = cls(
            ccm_profile=reader.get_n(4),
            ccm_level=reader.get_n(4),
            coefficient_log2_denom=reader.get_ue(),
            bl_bit_depth_minus8=reader.get_ue(),
            el_bit_depth_minus8=reader.get_ue(),
            hdr_bit_depth_minus8=reader.get_ue(),
            disable_residual_flag=reader.get(),
        )
        coef_len = meta.coefficient_log2_denom
        el_bit_depth = meta.el_bit_depth_minus8 + 8

        meta.num_pivots_minus2 = []
        meta.pred_pivot_value = []
        for _ in range(NUM_COMPONENTS):
            num_pivots_minus2 = reader.get_ue()
            meta.num_pivots_minus2.append(num_pivots_minus2)
            meta.pred_pivot_value.append(
                [reader.get_n(el_bit_depth) for _ in range(num_pivots_minus2 + 2)]
            )

        for cmp, num_pivots_minus2 in enumerate(meta.num_pivots_minus2):
            count = num_pivots_minus2 + 1
            meta.mapping_idc[cmp] = [0] * count
            meta.poly_order_minus1[cmp] = [0] * count
            meta.poly_coef_int[cmp] = [[] for _ in range(count)]
            meta.poly_coef[cmp] = [[] for _ in range(count)]
            meta.mmr_order_minus1[cmp] = [0] * count
            meta.mmr_constant_int[cmp] = [0] * count
            meta.mmr_constant[cmp] = [0] * count
            meta.mmr_coef_int[cmp] = [[] for _ in range(count)]
            meta.mmr_coef[cmp] = [[] for _ in range(count)]

            for pivot_idx in range(count):
                idc = reader.get_ue()
                meta.mapping_idc[cmp][pivot_idx] = idc

                if idc == MAPPING_POLYNOMIAL:
                    order_minus1 = reader.get_ue()
                    meta.poly_order_minus1[cmp][pivot_idx] = order_minus1
                    coefs_int = []
                    coefs = []
                    for _ in range(order_minus1 + 2):
                        coefs_int.append(reader.get_se())
                        coefs.append(reader.get_n(coef_len))
                    meta.poly_coef_int[cmp][pivot_idx] = coefs_int
                    meta.poly_coef[cmp][pivot_idx] = coefs
                elif idc == MAPPING_MMR:
                    order_minus1 = reader.get_n(2)
                    meta.mmr_order_minus1[cmp][pivot_idx] = order_minus1
                    meta.mmr_constant_int[cmp][pivot_idx] = reader.get_se()
                    meta.mmr_constant[cmp][pivot_idx] = reader.get_n(coef_len)

                    # Row 0 carries no coefficients; later rows hold 7 plus a spare slot
                    rows_int: list[list[int]] = [[] for _ in range(order_minus1 + 2)]
                    rows: list[list[int]] = [[] for _ in range(order_minus1 + 2)]
                    for row in range(1, order_minus1 + 2):
                        row_int = [0] * 8
                        row_values = [0] * 8
                        for j in range(7):
                            row_int[j] = reader.get_se()
                            row_values[j] = reader.get_n(coef_len)
                        rows_int[row] = row_int
                        rows[row] = row_values
                    meta.mmr_coef_int[cmp][pivot_idx] = rows_int
                    meta.mmr_coef[cmp][pivot_idx] = rows

        if not meta.disable_residual_flag:
            for cmp in range(NUM_COMPONENTS):
                meta.nlq_offset[cmp] = reader.get_n(el_bit_depth)
                meta.hdr_in_max_int[cmp] = reader.get_ue()
                meta.hdr_in_max[cmp] = reader.get_n(coef_len)
                meta.linear_deadzone_slope_int[cmp] = reader.get_ue()
                meta.linear_deadzone_slope[cmp] = reader.get_n(coef_len)
                meta.linear_deadzone_threshold_int[cmp] = reader.get_ue()
                meta.linear_deadzone_threshold[cmp] = reader.get_n(coef_len)

        return meta


@dataclass
class St2094_10DmData:
    """Display management metadata header; the payload is kept as raw bits."""

    app_identifier: int = 0
    app_version: int = 0
    metadata_refresh_flag: bool = False
    dm_data: bytes | None = None

    @classmethod
    def parse(cls, reader: BitReader) -> St2094_10DmData:
        """Read display management metadata following the user data type code."""
        meta = cls(
            app_identifier=reader.get_ue(),
            app_version=reader.get_ue(),
            metadata_refresh_flag=reader.get(),
        )
        if meta.metadata_refresh_flag:
            bit_count = reader.available()
            value = reader.get_n(bit_count)
            padding = -bit_count % 8
            meta.dm_data = (value << padding).to_bytes(
                (bit_count + padding) // 8, "big"
            )
        return meta


@dataclass
class St2094_10ItuT35:
    """ITU-T T.35 SEI form of ST 2094-10 metadata."""

    user_data_type_struct: St2094_10CmData | St2094_10DmData

    @classmethod
    def parse_itu_t35_dashif(cls, data: bytes) -> St2094_10ItuT35:
        """Parse a T.35 payload as carried in DASH-IF Dolby Vision streams."""
        trimmed = cls.validated_trimmed_data(data)
        reader = BitReader(clear_start_code_emulation_prevention_3_byte(trimmed))

        country_code = reader.get_n(8)
        provider_code = reader.get_n(16)
        if country_code != ITU_T_T35_COUNTRY_CODE:
            raise ValueError(f"invalid itu_t_t35_country_code: {country_code}")
        if provider_code != ITU_T_T35_PROVIDER_CODE:
            raise ValueError(f"invalid itu_t_t35_provider_code: {provider_code}")

        user_identifier = reader.get_n(32)
        if user_identifier != USER_IDENTIFIER:
            raise ValueError(f"invalid user_identifier: {user_identifier}")

        user_data_type_code = reader.get_n(8)
        if user_data_type_code == USER_DATA_TYPE_CM_DATA:
            meta: St2094_10CmData | St2094_10DmData = St2094_10CmData.parse(reader)
        elif user_data_type_code == USER_DATA_TYPE_DM_DATA:
            meta = St2094_10DmData.parse(reader)
        else:
            raise ValueError(f"Invalid user_data_type_code: {user_data_type_code}")

        return cls(user_data_type_struct=meta)

    @classmethod
    def validated_trimmed_data(cls, data: bytes) -> bytes:
        """Check the start bytes and strip a leading SEI header if present."""
        data = bytes(data)
        start = data[:7]
        if len(start) == 7:
            if tuple(start[:3]) == _SEI_PREFIX and start[4:7] == _T35_START:
                return data[4:]
            if start == _T35_FULL_START:
                return data
        raise ValueError(f"Invalid St2094-10 T-T35 SEI start bytes\n{list(start)}")