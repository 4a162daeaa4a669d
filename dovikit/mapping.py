"""Polynomial and MMR prediction parameters of an RPU (rpu_data_mapping)."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable, TypeVar

from .bitstream import BitReader, BitWriter
from .header import NUM_COMPONENTS, RpuDataHeader

MAPPING_POLYNOMIAL = 0
MAPPING_MMR = 1
MMR_COEF_COUNT = 7
MAX_MMR_ORDER_MINUS1 = 2

T = TypeVar("T")


def _per_component() -> list[list]:
    return [[] for _ in range(NUM_COMPONENTS)]


def _fill_if_empty(values: list, count: int, factory: Callable[[], T]) -> None:
    if not values:
        values.extend(factory() for _ in range(count))


def _coefficient_length(header: RpuDataHeader) -> int:
    if header.coefficient_data_type == 0:
        return header.coefficient_log2_denom
    if header.coefficient_data_type == 1:
        return 32
    raise ValueError(
        f"Invalid coefficient_data_type value: {header.coefficient_data_type}"
    )


@dataclass
class RpuDataMapping:
    """Per-component, per-pivot prediction curves."""

    mapping_idc: list[list[int]] = field(default_factory=_per_component)
    mapping_param_pred_flag: list[list[bool]] = field(default_factory=_per_component)
    num_mapping_param_predictors: list[list[int]] = field(
        default_factory=_per_component
    )
    diff_pred_part_idx_mapping_minus1: list[list[int]] = field(
        default_factory=_per_component
    )
    poly_order_minus1: list[list[int]] = field(default_factory=_per_component)
    linear_interp_flag: list[list[bool]] = field(default_factory=_per_component)
    pred_linear_interp_value_int: list[list[int]] = field(
        default_factory=_per_component
    )
    pred_linear_interp_value: list[list[int]] = field(default_factory=_per_component)
    poly_coef_int: list[list[list[int]]] = field(default_factory=_per_component)
    poly_coef: list[list[list[int]]] = field(default_factory=_per_component)
    mmr_order_minus1: list[list[int]] = field(default_factory=_per_component)
    mmr_constant_int: list[list[int]] = field(default_factory=_per_component)
    mmr_constant: list[list[int]] = field(default_factory=_per_component)
    mmr_coef_int: list[list[list[list[int]]]] = field(default_factory=_per_component)
    mmr_coef: list[list[list[list[int]]]] = field(default_factory=_per_component)

    @classmethod
    def parse(cls, reader: BitReader, header: RpuDataHeader) -> RpuDataMapping:
        """Read the mapping parameters described by ``header``."""
        data = cls()
        coef_len = _coefficient_length(header)
        int_parts = header.coefficient_data_type == 0

        for cmp, num_pivots_minus_2 in enumerate(
            header.num_pivots_minus_2[:NUM_COMPONENTS]
        ):
            count = num_pivots_minus_2 + 1
            data.mapping_idc[cmp] = [0] * count
            data.num_mapping_param_predictors[cmp] = [0] * count
            data.mapping_param_pred_flag[cmp] = [False] * count

            for pivot_idx in range(count):
                data.mapping_idc[cmp][pivot_idx] = reader.get_ue()

                if data.num_mapping_param_predictors[cmp][pivot_idx] > 0:
                    data.mapping_param_pred_flag[cmp][pivot_idx] = reader.get()
                else:
                    data.mapping_param_pred_flag[cmp][pivot_idx] = False

                if not data.mapping_param_pred_flag[cmp][pivot_idx]:
                    idc = data.mapping_idc[cmp][pivot_idx]
                    if idc == MAPPING_POLYNOMIAL:
                        data._parse_polynomial(
                            reader, cmp, pivot_idx, count, num_pivots_minus_2,
                            coef_len, int_parts,
                        )
                    elif idc == MAPPING_MMR:
                        data._parse_mmr(reader, cmp, pivot_idx, count, coef_len, int_parts)
                elif data.num_mapping_param_predictors[cmp][pivot_idx] > 1:
                    _fill_if_empty(data.diff_pred_part_idx_mapping_minus1[cmp], count, int)
                    data.diff_pred_part_idx_mapping_minus1[cmp][pivot_idx] = reader.get_ue()

        return data

    def _parse_polynomial(
        self,
        reader: BitReader,
        cmp: int,
        pivot_idx: int,
        count: int,
        num_pivots_minus_2: int,
        coef_len: int,
        int_parts: bool,
    ) -> None:
        _fill_if_empty(self.poly_order_minus1[cmp], count, int)
        order_minus1 = reader.get_ue()
        self.poly_order_minus1[cmp][pivot_idx] = order_minus1

        if order_minus1 == 0:
            _fill_if_empty(self.linear_interp_flag[cmp], count, bool)
            self.linear_interp_flag[cmp][pivot_idx] = reader.get()

        if order_minus1 == 0 and self.linear_interp_flag[cmp][pivot_idx]:
            # One extra slot: the last pivot also carries its end point
            if not self.pred_linear_interp_value[cmp]:
                self.pred_linear_interp_value_int[cmp] = [0] * (count + 1)
                self.pred_linear_interp_value[cmp] = [0] * (count + 1)

            if int_parts:
                self.pred_linear_interp_value_int[cmp][pivot_idx] = reader.get_ue()
            self.pred_linear_interp_value[cmp][pivot_idx] = reader.get_n(coef_len)

            if pivot_idx == num_pivots_minus_2:
                if int_parts:
                    self.pred_linear_interp_value_int[cmp][pivot_idx + 1] = reader.get_ue()
                self.pred_linear_interp_value[cmp][pivot_idx + 1] = reader.get_n(coef_len)
            return

        if not self.poly_coef_int[cmp]:
            self.poly_coef_int[cmp] = [[] for _ in range(count)]
            self.poly_coef[cmp] = [[] for _ in range(count)]

        coef_count = order_minus1 + 2
        coefs_int = [0] * coef_count
        coefs = [0] * coef_count
        for i in range(coef_count):
            if int_parts:
                coefs_int[i] = reader.get_se()
            coefs[i] = reader.get_n(coef_len)
        self.poly_coef_int[cmp][pivot_idx] = coefs_int
        self.poly_coef[cmp][pivot_idx] = coefs

    def _parse_mmr(
        self,
        reader: BitReader,
        cmp: int,
        pivot_idx: int,
        count: int,
        coef_len: int,
        int_parts: bool,
    ) -> None:
        if not self.mmr_order_minus1[cmp]:
            self.mmr_order_minus1[cmp] = [0] * count
            self.mmr_constant_int[cmp] = [0] * count
            self.mmr_constant[cmp] = [0] * count
            self.mmr_coef_int[cmp] = [[] for _ in range(count)]
            self.mmr_coef[cmp] = [[] for _ in range(count)]

        order_minus1 = reader.get_n(2)
        if order_minus1 > MAX_MMR_ORDER_MINUS1:
            raise ValueError(f"mmr_order_minus1 should be <= 2, got {order_minus1}")
        self.mmr_order_minus1[cmp][pivot_idx] = order_minus1

        rows = order_minus1 + 2
        coef_int = [[0] * MMR_COEF_COUNT for _ in range(rows)]
        coef = [[0] * MMR_COEF_COUNT for _ in range(rows)]

        if int_parts:
            self.mmr_constant_int[cmp][pivot_idx] = reader.get_se()
        self.mmr_constant[cmp][pivot_idx] = reader.get_n(coef_len)

        for row in range(1, rows):
            for j in range(MMR_COEF_COUNT):
                if int_parts:
                    coef_int[row][j] = reader.get_se()
                coef[row][j] = reader.get_n(coef_len)

        self.mmr_coef_int[cmp][pivot_idx] = coef_int
        self.mmr_coef[cmp][pivot_idx] = coef

    def write(self, writer: BitWriter, header: RpuDataHeader) -> None:
        """Write the mapping parameters described by ``header``."""
        coef_len = _coefficient_length(header)
        int_parts = header.coefficient_data_type == 0

        for cmp, (idcs, num_pivots_minus_2) in enumerate(
            zip(self.mapping_idc, header.num_pivots_minus_2)
        ):
            count = num_pivots_minus_2 + 1
            for pivot_idx, idc in enumerate(idcs[:count]):
                writer.write_ue(idc)

                predictors = self.num_mapping_param_predictors[cmp][pivot_idx]
                if predictors > 0:
                    writer.write(self.mapping_param_pred_flag[cmp][pivot_idx])

                if not self.mapping_param_pred_flag[cmp][pivot_idx]:
                    if idc == MAPPING_POLYNOMIAL:
                        self._write_polynomial(
                            writer, cmp, pivot_idx, num_pivots_minus_2, coef_len, int_parts
                        )
                    elif idc == MAPPING_MMR:
                        self._write_mmr(writer, cmp, pivot_idx, coef_len, int_parts)
                elif predictors > 1:
                    writer.write_ue(self.diff_pred_part_idx_mapping_minus1[cmp][pivot_idx])

    def _write_polynomial(
        self,
        writer: BitWriter,
        cmp: int,
        pivot_idx: int,
        num_pivots_minus_2: int,
        coef_len: int,
        int_parts: bool,
    ) -> None:
        order_minus1 = self.poly_order_minus1[cmp][pivot_idx]
        writer.write_ue(order_minus1)

        if order_minus1 == 0:
            writer.write(self.linear_interp_flag[cmp][pivot_idx])

        if order_minus1 == 0 and self.linear_interp_flag[cmp][pivot_idx]:
            last = pivot_idx == num_pivots_minus_2
            for idx in (pivot_idx, pivot_idx + 1) if last else (pivot_idx,):
                if int_parts:
                    writer.write_ue(self.pred_linear_interp_value_int[cmp][idx])
                writer.write_n(self.pred_linear_interp_value[cmp][idx], coef_len)
            return

        coefs_int = self.poly_coef_int[cmp][pivot_idx]
        coefs = self.poly_coef[cmp][pivot_idx]
        for i in range(order_minus1 + 2):
            if int_parts:
                writer.write_se(coefs_int[i])
            writer.write_n(coefs[i], coef_len)

    def _write_mmr(
        self,
        writer: BitWriter,
        cmp: int,
        pivot_idx: int,
        coef_len: int,
        int_parts: bool,
    ) -> None:
        order_minus1 = self.mmr_order_minus1[cmp][pivot_idx]
        writer.write_n(order_minus1, 2)

        if int_parts:
            writer.write_se(self.mmr_constant_int[cmp][pivot_idx])
        writer.write_n(self.mmr_constant[cmp][pivot_idx], coef_len)

        coef_int = self.mmr_coef_int[cmp][pivot_idx]
        coef = self.mmr_coef[cmp][pivot_idx]
        for row in range(1, order_minus1 + 2):
            for j in range(MMR_COEF_COUNT):
                if int_parts:
                    writer.write_se(coef_int[row][j])
                writer.write_n(coef[row][j], coef_len)

    def set_empty_p81_mapping(self) -> None:
        """Replace every curve with the identity polynomial used by profile 8.1."""
        self.mapping_idc = [[0] for _ in range(NUM_COMPONENTS)]
        self.mapping_param_pred_flag = [[False] for _ in range(NUM_COMPONENTS)]
        self.num_mapping_param_predictors = [[0] for _ in range(NUM_COMPONENTS)]
        self.diff_pred_part_idx_mapping_minus1 = [[0] for _ in range(NUM_COMPONENTS)]
        self.poly_order_minus1 = [[0] for _ in range(NUM_COMPONENTS)]
        self.linear_interp_flag = [[False] for _ in range(NUM_COMPONENTS)]
        self.pred_linear_interp_value_int = _per_component()
        self.pred_linear_interp_value = _per_component()
        self.poly_coef_int = [[[0, 1]] for _ in range(NUM_COMPONENTS)]
        self.poly_coef = [[[0, 0]] for _ in range(NUM_COMPONENTS)]
        self.mmr_order_minus1 = _per_component()
        self.mmr_constant_int = _per_component()
        self.mmr_constant = _per_component()
        self.mmr_coef_int = _per_component()
        self.mmr_coef = _per_component()

    @classmethod
    def p8_default(cls) -> RpuDataMapping:
        """The identity mapping of a typical profile 8.1 RPU."""
        return cls(
            mapping_idc=[[0] for _ in range(NUM_COMPONENTS)],
            mapping_param_pred_flag=[[False] for _ in range(NUM_COMPONENTS)],
            num_mapping_param_predictors=[[0] for _ in range(NUM_COMPONENTS)],
            diff_pred_part_idx_mapping_minus1=[[0] for _ in range(NUM_COMPONENTS)],
            poly_order_minus1=[[0] for _ in range(NUM_COMPONENTS)],
            linear_interp_flag=[[False] for _ in range(NUM_COMPONENTS)],
            pred_linear_interp_value_int=[[0] for _ in range(NUM_COMPONENTS)],
            pred_linear_interp_value=[[0] for _ in range(NUM_COMPONENTS)],
            poly_coef_int=[[[0, 1]] for _ in range(NUM_COMPONENTS)],
            poly_coef=[[[0, 0]] for _ in range(NUM_COMPONENTS)],
            mmr_order_minus1=[[0] for _ in range(NUM_COMPONENTS)],
            mmr_constant_int=[[0] for _ in range(NUM_COMPONENTS)],
            mmr_constant=[[0] for _ in range(NUM_COMPONENTS)],
            mmr_coef_int=[[[]] for _ in range(NUM_COMPONENTS)],
            mmr_coef=[[[]] for _ in range(NUM_COMPONENTS)],
        )