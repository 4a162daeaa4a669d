# dovikit

Pure-Python building blocks for reading and writing Dolby Vision metadata
and madVR HDR measurement files. The package has no runtime dependencies.

## What is in it

- `dovikit.bitstream`: `BitReader` and `BitWriter` for most-significant-bit
  first bit I/O, with fixed-width fields (`get_n` / `write_n`) and
  Exp-Golomb codes (`get_ue`, `get_se`, `write_ue`, `write_se`), plus
  `compute_crc32`, the CRC-32/MPEG-2 checksum.
- `dovikit.pq`: `nits_to_pq`, the SMPTE ST 2084 conversion from nits to a
  normalised PQ value, and `clear_start_code_emulation_prevention_3_byte` /
  `add_start_code_emulation_prevention_3_byte` for Annex B escaping.
- `dovikit.header.RpuDataHeader`: the RPU data header. `parse`,
  `write_header`, `validate(profile)` (raises `ValueError`),
  `get_dovi_profile()` and the `p8_default()` preset.
- `dovikit.mapping.RpuDataMapping`: polynomial and MMR prediction curves.
  `parse(reader, header)`, `write(writer, header)`, `set_empty_p81_mapping()`
  and `p8_default()`.
- `dovikit.nlq.RpuDataNlq`: profile 7 NLQ parameters. `parse`, `write`,
  `convert_to_mel()`, `is_mel()` and `mel_default()`.
- `dovikit.vdr_dm_data`: `VdrDmData`, the display management colour
  conversion and signal description, with `parse`, `write`, `validate`
  (raises `ValueError`), `set_p81_coeffs`, `set_scene_cut` and
  `default_pq()`; and the `CmVersion` enum (`V29`, `V40`).
- `dovikit.profiles`: `DoviProfile`, `Profile4`, `Profile5`, `Profile7` and
  `Profile81`, each with `dm_data()` and `backwards_compatible()`.
- `dovikit.st2094_10`: `St2094_10ItuT35.parse_itu_t35_dashif(data)` for
  ST 2094-10 metadata in ITU-T T.35 SEI payloads, giving either
  `St2094_10CmData` (composer data) or `St2094_10DmData`.
- `dovikit.madvr`: `MadVRMeasurements` reads (`parse_file`,
  `parse_measurements`) and writes (`write_measurements`) madVR
  measurement files: the header, scenes and per-frame histograms. Files
  below version 5 carry a 31-bin luminance histogram; version 5 and later
  carry 256 luminance bins and 31 hue bins, and version 6 adds DCI-P3 and
  BT.709 frame peaks. Per-frame target nits are handled when the header
  flags are 3. Malformed data raises `MadVRError`.

## Installation

```
pip install .
```

To run the tests:

```
pip install ".[test]"
pytest
```

## Examples

Reading a madVR measurement file:

```python
from dovikit.madvr import MadVRMeasurements

measurements = MadVRMeasurements.parse_file("movie.bin")
print(measurements.header.maxcll, len(measurements.scenes))

for scene in measurements.scenes:
    frames = scene.get_frames(measurements.frames)
    print(scene.start, scene.end, scene.max_pq, scene.avg_pq, len(frames))

data = measurements.write_measurements()
```

Writing a profile 8.1 RPU header and mapping and reading them back:

```python
from dovikit.bitstream import BitReader, BitWriter
from dovikit.header import RpuDataHeader
from dovikit.mapping import RpuDataMapping

header = RpuDataHeader.p8_default()
mapping = RpuDataMapping.p8_default()

writer = BitWriter()
header.write_header(writer)
mapping.write(writer, header)

reader = BitReader(writer.as_bytes())
parsed = RpuDataHeader.parse(reader)
assert parsed.get_dovi_profile() == 8
parsed.validate(8)
parsed_mapping = RpuDataMapping.parse(reader, parsed)
```

Converting nits to PQ:

```python
from dovikit.pq import nits_to_pq

nits_to_pq(100)    # about 0.508
nits_to_pq(10000)  # 1.0
```

## What it does not do

- It does not parse or write a whole RPU NAL unit: there is no container
  tying header, mapping, NLQ and DM data together, and no CRC trailer
  handling beyond `compute_crc32` itself.
- It has no extension metadata blocks (L1, L2, L5, L6, L8–L11, L254 and so
  on). `VdrDmData.cmv29_metadata` and `cmv40_metadata` accept any object
  with `validate()` and `write(writer)` methods, but the package supplies
  none and `VdrDmData.parse` leaves them unset.
- `St2094_10DmData` keeps the display management payload as raw bytes
  (`dm_data`) rather than decoding it.
- There is no XML metadata import, no RPU generation and no command-line
  tool; it is a library only.