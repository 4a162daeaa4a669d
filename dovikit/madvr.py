"""Reading and writing madVR HDR measurement files."""

from __future__ import annotations

import math
import struct
from dataclasses import dataclass, field
from pathlib import Path

from .pq import nits_to_pq

MAGIC_CODE = "mvr+"
MAX_FILE_SIZE = 250_000_000


class MadVRError(Exception):
    """Raised for malformed or unwritable measurement data."""


class _Reader:
    def __init__(self, data: bytes) -> None:
        self._data = data
        self.position = 0

    def _unpack(self, fmt: str) -> tuple:
        size = struct.calcsize(fmt)
        if self.position + size > len(self._data):
            raise MadVRError("madvr_parse: unexpected end of data")
        values = struct.unpack_from(fmt, self._data, self.position)
        self.position += size
        return values

    def u32(self) -> int:
        return self._unpack("<I")[0]

    def u16(self) -> int:
        return self._unpack("<H")[0]

    def u16s(self, count: int) -> tuple[int, ...]:
        return self._unpack(f"<{count}H")

    def remaining(self) -> int:
        return len(self._data) - self.position


def _put_u32(out: bytearray, value: int) -> None:
    if not 0 <= value <= 0xFFFFFFFF:
        raise MadVRError(f"value {value} does not fit in 32 bits")
    out += struct.pack("<I", value)


def _put_u16(out: bytearray, value: int) -> None:
    if not 0 <= value <= 0xFFFF:
        raise MadVRError(f"value {value} does not fit in 16 bits")
    out += struct.pack("<H", value)


def _scaled_u16(value: float, scale: float) -> int:
    """Round half away from zero and saturate to the u16 range."""
    x = value * scale
    if math.isnan(x):
        return 0
    rounded = math.copysign(math.floor(abs(x) + 0.5), x)
    return int(min(max(rounded, 0.0), 65535.0))


@dataclass
class MadVRHeader:
    version: int = 0
    header_size: int = 0
    scene_count: int = 0
    frame_count: int = 0
    flags: int = 0
    maxcll: int = 0
    maxfall: int = 0
    avgfall: int = 0
    target_peak_nits: int = 0

    @classmethod
    def _parse(cls, reader: _Reader) -> MadVRHeader:
        header = cls(
            version=reader.u32(),
            header_size=reader.u32(),
            scene_count=reader.u32(),
            frame_count=reader.u32(),
            flags=reader.u32(),
            maxcll=reader.u32(),
        )
        if header.flags == 0:
            raise MadVRError("incomplete measurement file")
        if header.version >= 5:
            header.maxfall = reader.u32()
            header.avgfall = reader.u32()
            if header.version >= 6:
                header.target_peak_nits = reader.u32()
        return header

    def _write(self, out: bytearray) -> None:
        if self.flags == 0:
            raise MadVRError("can only write complete measurement files")
        for value in (
            self.version,
            self.header_size,
            self.scene_count,
            self.frame_count,
            self.flags,
            self.maxcll,
        ):
            _put_u32(out, value)
        if self.version >= 5:
            _put_u32(out, self.maxfall)
            _put_u32(out, self.avgfall)
            if self.version >= 6:
                _put_u32(out, self.target_peak_nits)


@dataclass
class MadVRFrame:
    peak_pq_2020: float = 0.0
    peak_pq_dcip3: float | None = None
    peak_pq_709: float | None = None
    lum_histogram: list[float] = field(default_factory=list)
    hue_histogram: list[float] | None = None
    target_nits: int | None = None
    avg_pq: float = 0.0
    target_pq: float = 0.0


@dataclass
class MadVRScene:
    start: int = 0
    end: int = 0
    peak_nits: int = 0
    length: int = 0
    max_pq: float = 0.0
    avg_pq: float = 0.0

    def get_frames(self, frames: list[MadVRFrame]) -> list[MadVRFrame]:
        """Return the frames belonging to this scene."""
        frame_count = len(frames)
        if self.end >= frame_count:
            raise MadVRError(
                f"scene end higher than frame count: {self.end} > {frame_count}"
            )
        if self.start > self.end:
            raise MadVRError(f"scene start {self.start} after end {self.end}")
        return frames[self.start : self.end + 1]


def _parse_scenes(header: MadVRHeader, reader: _Reader) -> list[MadVRScene]:
    scenes = [MadVRScene(start=reader.u32()) for _ in range(header.scene_count)]
    for scene in scenes:
        end_exclusive = reader.u32()
        if end_exclusive == 0 or end_exclusive - 1 < scene.start:
            raise MadVRError(
                f"madvr_parse: invalid scene bounds {scene.start}..{end_exclusive}"
            )
        scene.end = end_exclusive - 1
        scene.length = scene.end - scene.start + 1
    for scene in scenes:
        scene.peak_nits = reader.u32()
        scene.max_pq = nits_to_pq(scene.peak_nits)
    return scenes


def _write_scenes(scenes: list[MadVRScene], out: bytearray) -> None:
    for scene in scenes:
        _put_u32(out, scene.start)
    for scene in scenes:
        _put_u32(out, scene.end + 1)
    for scene in scenes:
        _put_u32(out, scene.peak_nits)


def _parse_histogram(length: int, reader: _Reader) -> list[float]:
    return [v / 640.0 for v in reader.u16s(length)]


def _write_histogram(histogram: list[float], out: bytearray) -> None:
    for value in histogram:
        _put_u16(out, _scaled_u16(value, 640.0))


def _parse_frames(header: MadVRHeader, reader: _Reader) -> list[MadVRFrame]:
    sdr_peak_pq = nits_to_pq(100)
    hdr_peak_pq = 1.0
    frames = []

    for _ in range(header.frame_count):
        frame = MadVRFrame(peak_pq_2020=reader.u16() / 64000.0)
        if header.version >= 6:
            frame.peak_pq_dcip3 = reader.u16() / 64000.0
            frame.peak_pq_709 = reader.u16() / 64000.0

        if header.version >= 5:
            sdr_step = sdr_peak_pq / 64.0
            hdr_step = (hdr_peak_pq - sdr_peak_pq) / 192.0
            # Values sit in the middle of each histogram bin
            sdr_step += sdr_step / 2.0
            hdr_step += hdr_step / 2.0

            frame.lum_histogram = _parse_histogram(256, reader)
            frame.hue_histogram = _parse_histogram(31, reader)

            def bin_pq(i: int) -> float:
                if i <= 64:
                    return i * sdr_step
                return sdr_peak_pq + (i - 63) * hdr_step

            frame.avg_pq = sum(
                bin_pq(i) * (percent / 100.0)
                for i, percent in enumerate(frame.lum_histogram)
                # Skip black bars
                if not (i == 0 and 2.0 < percent < 30.0)
            )
        else:
            step = hdr_peak_pq / 31.0
            step += step / 2.0
            frame.lum_histogram = _parse_histogram(31, reader)
            frame.avg_pq = sum(
                i * step * (percent / 100.0)
                for i, percent in enumerate(frame.lum_histogram)
            )

        percent_sum = sum(frame.lum_histogram)
        if percent_sum == 0.0:
            frame.avg_pq = 1.0
        else:
            frame.avg_pq = min(frame.avg_pq * (100.0 / percent_sum), 1.0)

        frames.append(frame)

    return frames


def _write_frames(
    header: MadVRHeader, frames: list[MadVRFrame], out: bytearray
) -> None:
    for frame in frames:
        _put_u16(out, _scaled_u16(frame.peak_pq_2020, 64000.0))

        if header.version >= 6:
            if frame.peak_pq_dcip3 is None or frame.peak_pq_709 is None:
                raise MadVRError("missing different gamut frame peaks for v6")
            _put_u16(out, _scaled_u16(frame.peak_pq_dcip3, 64000.0))
            _put_u16(out, _scaled_u16(frame.peak_pq_709, 64000.0))

        if header.version >= 5:
            if len(frame.lum_histogram) != 256:
                raise MadVRError("lum histogram has to be size 256 for v5+")
            if frame.hue_histogram is None:
                raise MadVRError("missing hue histogram for v6")
            if len(frame.hue_histogram) != 31:
                raise MadVRError("hue histogram has to be size 31")
            _write_histogram(frame.lum_histogram, out)
            _write_histogram(frame.hue_histogram, out)
        else:
            if len(frame.lum_histogram) != 31:
                raise MadVRError(
                    "lum histogram has to be size 31 for versions below 5"
                )
            _write_histogram(frame.lum_histogram, out)


@dataclass
class MadVRMeasurements:
    header: MadVRHeader = field(default_factory=MadVRHeader)
    scenes: list[MadVRScene] = field(default_factory=list)
    frames: list[MadVRFrame] = field(default_factory=list)

    @classmethod
    def parse_file(cls, path: str | Path) -> MadVRMeasurements:
        """Parse a measurement file from disk."""
        path = Path(path)
        if path.stat().st_size > MAX_FILE_SIZE:
            raise MadVRError("madvr_parse: file probably too large")
        return cls.parse_measurements(path.read_bytes())

    @classmethod
    def parse_measurements(cls, data: bytes) -> MadVRMeasurements:
        """Parse measurement file contents."""
        data = bytes(data)
        if len(data) < 4:
            raise MadVRError("madvr_parse: data too short for magic code")
        try:
            magic = data[:4].decode("utf-8")
        except UnicodeDecodeError as exc:
            raise MadVRError(f"invalid magic code: {exc}") from exc
        if magic != MAGIC_CODE:
            raise MadVRError(f"invalid magic code {magic}, expected {MAGIC_CODE}")

        reader = _Reader(data[4:])
        header = MadVRHeader._parse(reader)
        measurements = cls(header=header)
        measurements.scenes = _parse_scenes(header, reader)
        measurements.frames = _parse_frames(header, reader)

        if header.flags == 3:
            if reader.remaining() // 2 != len(measurements.frames):
                raise MadVRError(
                    "madvr_parse: invalid remaining bytes for custom per-frame target nits"
                )
            for frame in measurements.frames:
                frame.target_nits = reader.u16()
                frame.target_pq = nits_to_pq(frame.target_nits)

        measurements._compute_max_scene_avg()
        return measurements

    def _compute_max_scene_avg(self) -> None:
        for scene in self.scenes:
            frames = scene.get_frames(self.frames)
            if not frames:
                raise MadVRError("no frames for scene")
            scene.avg_pq = max(f.avg_pq for f in frames)

    def write_measurements(self) -> bytes:
        """Serialise the measurements to the file format."""
        out = bytearray(MAGIC_CODE.encode("ascii"))
        self.header._write(out)
        _write_scenes(self.scenes, out)
        _write_frames(self.header, self.frames, out)

        if self.header.flags == 3:
            for i, frame in enumerate(self.frames):
                if frame.target_nits is None:
                    raise MadVRError(f"madvr_parse: missing target nits for frame {i}")
                _put_u16(out, frame.target_nits)

        return bytes(out)