"""SMPTE ST 2084 (PQ) helpers and Annex B emulation prevention."""

from __future__ import annotations

ST2084_Y_MAX = 10000.0
ST2084_M1 = 2610.0 / 16384.0
ST2084_M2 = (2523.0 / 4096.0) * 128.0
ST2084_C1 = 3424.0 / 4096.0
ST2084_C2 = (2413.0 / 4096.0) * 32.0
ST2084_C3 = (2392.0 / 4096.0) * 32.0


def nits_to_pq(nits: float) -> float:
    """Convert a luminance in nits (cd/m2) to a normalised PQ value."""
    y = float(nits) / ST2084_Y_MAX
    y_m1 = y**ST2084_M1
    return ((ST2084_C1 + ST2084_C2 * y_m1) / (1.0 + ST2084_C3 * y_m1)) ** ST2084_M2


def _is_prevention_position(data: bytes | bytearray, index: int, length: int) -> bool:
    return (
        2 < index < length - 2
        and data[index - 2] == 0
        and data[index - 1] == 0
        and data[index] <= 3
    )


def clear_start_code_emulation_prevention_3_byte(data: bytes) -> bytes:
    """Remove Annex B emulation prevention bytes, returning new bytes."""
    length = len(data)
    return bytes(
        value
        for index, value in enumerate(data)
        if not _is_prevention_position(data, index, length)
    )


def add_start_code_emulation_prevention_3_byte(data: bytes) -> bytes:
    """Escape data so that it cannot emulate an Annex B start code."""
    out = bytearray(data)
    i = 0
    while i < len(out):
        if _is_prevention_position(out, i, len(out)):
            out.insert(i, 3)
        i += 1
    return bytes(out)