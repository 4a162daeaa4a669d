"""Bit-level reading and writing with Exp-Golomb codes, plus CRC-32/MPEG-2."""

from __future__ import annotations


class BitReader:
    """Reads bits most significant first from a byte string."""

    def __init__(self, data: bytes) -> None:
        self._data = bytes(data)
        self._pos = 0
        self._len = len(self._data) * 8

    def get(self) -> bool:
        """Read a single bit."""
        if self._pos >= self._len:
            raise EOFError("no bits left to read")
        byte = self._data[self._pos >> 3]
        bit = (byte >> (7 - (self._pos & 7))) & 1
        self._pos += 1
        return bool(bit)

    def get_n(self, n: int) -> int:
        """Read an unsigned integer of ``n`` bits."""
        if n < 0:
            raise ValueError("bit count must not be negative")
        if self._pos + n > self._len:
            raise EOFError(f"cannot read {n} bits, only {self.available()} left")
        value = 0
        for _ in range(n):
            value = (value << 1) | self.get()
        return value

    def get_ue(self) -> int:
        """Read an unsigned Exp-Golomb code."""
        leading_zeros = 0
        while not self.get():
            leading_zeros += 1
        return (1 << leading_zeros) - 1 + self.get_n(leading_zeros)

    def get_se(self) -> int:
        """Read a signed Exp-Golomb code."""
        k = self.get_ue()
        if k & 1:
            return (k + 1) >> 1
        return -(k >> 1)

    def available(self) -> int:
        """Number of bits not yet read."""
        return self._len - self._pos


class BitWriter:
    """Accumulates bits most significant first."""

    def __init__(self) -> None:
        self._value = 0
        self._bits = 0

    def write(self, bit: bool) -> None:
        """Append a single bit."""
        self._value = (self._value << 1) | (1 if bit else 0)
        self._bits += 1

    def write_n(self, value: int, n: int) -> None:
        """Append the low ``n`` bits of ``value``."""
        if n < 0:
            raise ValueError("bit count must not be negative")
        self._value = (self._value << n) | (value & ((1 << n) - 1))
        self._bits += n

    def write_ue(self, value: int) -> None:
        """Append an unsigned Exp-Golomb code."""
        if value < 0:
            raise ValueError("unsigned Exp-Golomb value must not be negative")
        code = value + 1
        length = code.bit_length()
        self.write_n(0, length - 1)
        self.write_n(code, length)

    def write_se(self, value: int) -> None:
        """Append a signed Exp-Golomb code."""
        self.write_ue(2 * value - 1 if value > 0 else -2 * value)

    def as_bytes(self) -> bytes:
        """Return the written bits, zero padded to a whole byte."""
        padding = -self._bits % 8
        total = self._bits + padding
        return (self._value << padding).to_bytes(total // 8, "big")


_CRC32_MPEG2_POLY = 0x04C11DB7


def _build_crc_table() -> tuple[int, ...]:
    table = []
    for byte in range(256):
        crc = byte << 24
        for _ in range(8):
            if crc & 0x80000000:
                crc = ((crc << 1) ^ _CRC32_MPEG2_POLY) & 0xFFFFFFFF
            else:
                crc = (crc << 1) & 0xFFFFFFFF
        table.append(crc)
    return tuple(table)


_CRC_TABLE = _build_crc_table()


def compute_crc32(data: bytes) -> int:
    """CRC-32/MPEG-2 of ``data``."""
    crc = 0xFFFFFFFF
    for byte in data:
        crc = ((crc << 8) & 0xFFFFFFFF) ^ _CRC_TABLE[((crc >> 24) ^ byte) & 0xFF]
    return crc