"""Non-linear quantisation parameters of a profile 7 enhancement layer."""

from __future__ import annotations

from dataclasses import dataclass, field

from .bitstream import BitReader, BitWriter
from .header import NUM_COMPONENTS, RpuDataHeader

NLQ_LINEAR_DZ = 0


def _triples(count: int, value: int = 0) -> list[list[int]]:
    return [[value] * NUM_COMPONENTS for _ in range(count)]


def _fill_if_empty(values: list[list[int]], count: int) -> None:
    if not values:
        values.extend(_triples(count))


def _pivot_count(header: RpuDataHeader) -> int:
    if header.nlq_num_pivots_minus2 is None:
        raise ValueError("Shouldn't be in NLQ if not profile 7!")
    return header.nlq_num_pivots_minus2 + 1


def _coefficient_length(header: RpuDataHeader) -> int:
    if header.coefficient_data_type == 0:
        return header.coefficient_log2_denom
    if header.coefficient_data_type == 1:
        return 32
    raise ValueError(
        f"Invalid coefficient_data_type value: {header.coefficient_data_type}"
    )


def _all_equal(values: list[list[int]], expected: int) -> bool:
    return all(v == expected for row in values for v in row)


@dataclass
class RpuDataNlq:
    """Per-pivot, per-component NLQ parameters."""

    num_nlq_param_predictors: list[list[int]] = field(default_factory=list)
    nlq_param_pred_flag: list[list[bool]] = field(default_factory=list)
    diff_pred_part_idx_nlq_minus1: list[list[int]] = field(default_factory=list)
    nlq_offset: list[list[int]] = field(default_factory=list)
    vdr_in_max_int: list[list[int]] = field(default_factory=list)
    vdr_in_max: list[list[int]] = field(default_factory=list)
    linear_deadzone_slope_int: list[list[int]] = field(default_factory=list)
    linear_deadzone_slope: list[list[int]] = field(default_factory=list)
    linear_deadzone_threshold_int: list[list[int]] = field(default_factory=list)
    linear_deadzone_threshold: list[list[int]] = field(default_factory=list)

    @classmethod
    def parse(cls, reader: BitReader, header: RpuDataHeader) -> RpuDataNlq:
        """Read the NLQ parameters described by ``header``."""
        count = _pivot_count(header)
        coef_len = _coefficient_length(header)
        int_parts = header.coefficient_data_type == 0
        el_bit_depth = header.el_bit_depth_minus8 + 8

        data = cls(
            num_nlq_param_predictors=_triples(count),
            nlq_param_pred_flag=[[False] * NUM_COMPONENTS for _ in range(count)],
        )

        for pivot_idx in range(count):
            for cmp in range(NUM_COMPONENTS):
                predictors = data.num_nlq_param_predictors[pivot_idx][cmp]
                flag = reader.get() if predictors > 0 else False
                data.nlq_param_pred_flag[pivot_idx][cmp] = flag

                if not flag:
                    _fill_if_empty(data.nlq_offset, count)
                    _fill_if_empty(data.vdr_in_max, count)

                    data.nlq_offset[pivot_idx][cmp] = reader.get_n(el_bit_depth)

                    if int_parts:
                        _fill_if_empty(data.vdr_in_max_int, count)
                        data.vdr_in_max_int[pivot_idx][cmp] = reader.get_ue()

                    data.vdr_in_max[pivot_idx][cmp] = reader.get_n(coef_len)

                    if header.nlq_method_idc == NLQ_LINEAR_DZ:
                        _fill_if_empty(data.linear_deadzone_slope, count)
                        _fill_if_empty(data.linear_deadzone_threshold, count)

                        if int_parts:
                            _fill_if_empty(data.linear_deadzone_slope_int, count)
                            data.linear_deadzone_slope_int[pivot_idx][cmp] = (
                                reader.get_ue()
                            )
                        data.linear_deadzone_slope[pivot_idx][cmp] = reader.get_n(
                            coef_len
                        )

                        if int_parts:
                            _fill_if_empty(data.linear_deadzone_threshold_int, count)
                            data.linear_deadzone_threshold_int[pivot_idx][cmp] = (
                                reader.get_ue()
                            )
                        data.linear_deadzone_threshold[pivot_idx][cmp] = reader.get_n(
                            coef_len
                        )
                elif predictors > 1:
                    _fill_if_empty(data.diff_pred_part_idx_nlq_minus1, count)
                    data.diff_pred_part_idx_nlq_minus1[pivot_idx][cmp] = reader.get_ue()

        return data

    def convert_to_mel(self) -> None:
        """Neutralise the residual so the enhancement layer becomes MEL."""
        for values, neutral in (
            (self.nlq_offset, 0),
            (self.vdr_in_max_int, 1),
            (self.vdr_in_max, 0),
            (self.linear_deadzone_slope_int, 0),
            (self.linear_deadzone_slope, 0),
            (self.linear_deadzone_threshold_int, 0),
            (self.linear_deadzone_threshold, 0),
        ):
            for row in values:
                row[:] = [neutral] * len(row)

    def write(self, writer: BitWriter, header: RpuDataHeader) -> None:
        """Write the NLQ parameters described by ``header``."""
        count = _pivot_count(header)
        coef_len = _coefficient_length(header)
        int_parts = header.coefficient_data_type == 0
        el_bit_depth = header.el_bit_depth_minus8 + 8

        for pivot_idx in range(count):
            for cmp in range(NUM_COMPONENTS):
                predictors = self.num_nlq_param_predictors[pivot_idx][cmp]
                if predictors > 0:
                    writer.write(self.nlq_param_pred_flag[pivot_idx][cmp])

                if not self.nlq_param_pred_flag[pivot_idx][cmp]:
                    writer.write_n(self.nlq_offset[pivot_idx][cmp], el_bit_depth)
                    if int_parts:
                        writer.write_ue(self.vdr_in_max_int[pivot_idx][cmp])
                    writer.write_n(self.vdr_in_max[pivot_idx][cmp], coef_len)

                    if header.nlq_method_idc == NLQ_LINEAR_DZ:
                        if int_parts:
                            writer.write_ue(self.linear_deadzone_slope_int[pivot_idx][cmp])
                        writer.write_n(
                            self.linear_deadzone_slope[pivot_idx][cmp], coef_len
                        )
                        # The threshold's integer part is written from the slope's
                        if int_parts:
                            writer.write_ue(self.linear_deadzone_slope_int[pivot_idx][cmp])
                        writer.write_n(
                            self.linear_deadzone_threshold[pivot_idx][cmp], coef_len
                        )
                elif predictors > 1:
                    writer.write_ue(self.diff_pred_part_idx_nlq_minus1[pivot_idx][cmp])

    @classmethod
    def mel_default(cls) -> RpuDataNlq:
        """NLQ parameters of a minimal enhancement layer."""
        return cls(
            num_nlq_param_predictors=_triples(1),
            nlq_param_pred_flag=[[False] * NUM_COMPONENTS],
            diff_pred_part_idx_nlq_minus1=_triples(1),
            nlq_offset=_triples(1),
            vdr_in_max_int=_triples(1, 1),
            vdr_in_max=_triples(1),
            linear_deadzone_slope_int=_triples(1),
            linear_deadzone_slope=_triples(1),
            linear_deadzone_threshold_int=_triples(1),
            linear_deadzone_threshold=_triples(1),
        )

    def is_mel(self) -> bool:
        """Whether the parameters describe a minimal enhancement layer."""
        return (
            _all_equal(self.nlq_offset, 0)
            and _all_equal(self.vdr_in_max_int, 1)
            and _all_equal(self.vdr_in_max, 0)
            and _all_equal(self.linear_deadzone_slope_int, 0)
            and _all_equal(self.linear_deadzone_slope, 0)
            and _all_equal(self.linear_deadzone_threshold_int, 0)
            and _all_equal(self.linear_deadzone_threshold, 0)
        )