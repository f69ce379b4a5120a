"""Reader/writer for version-2 SFT frame files.

A file holds one or more concatenated frames. Each frame is::

    offset  size  field
         0     8  version                float64, always 2.0
         8     4  gps_sec                int32
        12     4  gps_nsec               int32
        16     8  tbase                  float64, SFT duration [s] = 1/deltaF
        24     4  first_frequency_index  int32, f0 = index / tbase
        28     4  nsamples               int32
        32     8  crc64                  uint64
        40     2  detector               ASCII, e.g. "H1"
        42     2  padding
        44     4  comment_length         int32, multiple of 8
        48     .  comment                NUL-padded text
         .     .  data                   nsamples x complex64

Byte order is whatever the writer used; it is detected from the version
field. The checksum is a reflected CRC-64 (polynomial 0xD800000000000000,
seeded with all ones) over the header with its crc64 field zeroed, then the
comment, then the data.
"""

from __future__ import annotations

import functools
import math
import os
import struct
from dataclasses import dataclass
from pathlib import Path
from typing import BinaryIO, Iterable, Iterator, Optional, Union

import numpy as np

from lftsynth.assembly.grid import round_half_up
from lftsynth.sft.types import SFT, SFTVector
from lftsynth.util.errors import SFTFormatError
from lftsynth.util.logging import get_logger
from lftsynth.util.time import gps_from_parts, split_gps

PathLike = Union[str, "os.PathLike[str]"]

SFT_VERSION = 2.0
HEADER_FORMAT = "diidiiQ2s2si"
HEADER_SIZE = struct.calcsize("<" + HEADER_FORMAT)
_CRC_OFFSET = 32
_COMMENT_ALIGN = 8
_BYTES_PER_BIN = 8

_CRC64_POLY = 0xD800000000000000
_CRC64_INIT = 0xFFFFFFFFFFFFFFFF


def _make_crc64_table() -> tuple:
    table = []
    for i in range(256):
        part = i
        for _ in range(8):
            if part & 1:
                part = (part >> 1) ^ _CRC64_POLY
            else:
                part >>= 1
        table.append(part)
    return tuple(table)


_CRC64_TABLE = _make_crc64_table()
_CRC64_TABLE_NP = np.array(_CRC64_TABLE, dtype=np.uint64)
_CRC_CHUNK = 4096
_U8 = np.uint64(8)
_LOW_BYTE = np.uint64(0xFF)


def _crc64_bytewise(data, crc: int) -> int:
    table = _CRC64_TABLE
    for byte in data:
        crc = (crc >> 8) ^ table[(crc ^ byte) & 0xFF]
    return crc


@functools.lru_cache(maxsize=None)
def _zero_run_tables(nbytes: int) -> tuple:
    """Per-register-byte tables that advance a CRC register over ``nbytes`` zero bytes.

    Feeding zeros is linear in the register, so the advanced register is the
    XOR of ``tables[j][(crc >> 8*j) & 0xFF]`` over the eight register bytes.
    """
    basis = np.array([1 << k for k in range(64)], dtype=np.uint64)
    for _ in range(nbytes):
        basis = (basis >> _U8) ^ _CRC64_TABLE_NP[basis & _LOW_BYTE]
    columns = [int(v) for v in basis]
    tables = []
    for j in range(8):
        table = [0] * 256
        for b in range(1, 256):
            low = (b & -b).bit_length() - 1
            table[b] = table[b & (b - 1)] ^ columns[8 * j + low]
        tables.append(tuple(table))
    return tuple(tables)


def crc64(data: bytes, crc: int = _CRC64_INIT) -> int:
    """Update a running CRC-64 with ``data``.

    Inputs of at least two chunks are split into ``_CRC_CHUNK``-byte rows that
    are run through the table in lockstep from a zero register, then folded
    into ``crc`` one row at a time.
    """
    nrows = len(data) // _CRC_CHUNK
    if nrows < 2:
        return _crc64_bytewise(data, crc)
    buf = np.frombuffer(data, dtype=np.uint8)
    rows = buf[: nrows * _CRC_CHUNK].reshape(nrows, _CRC_CHUNK)
    partial = np.zeros(nrows, dtype=np.uint64)
    for i in range(_CRC_CHUNK):
        partial = (partial >> _U8) ^ _CRC64_TABLE_NP[(partial ^ rows[:, i]) & _LOW_BYTE]
    advance = _zero_run_tables(_CRC_CHUNK)
    for row_crc in partial.tolist():
        nxt = row_crc
        for j, table in enumerate(advance):
            nxt ^= table[(crc >> (8 * j)) & 0xFF]
        crc = nxt
    return _crc64_bytewise(buf[nrows * _CRC_CHUNK :].tobytes(), crc)


@dataclass(frozen=True)
class SFTHeader:
    version: float
    gps_sec: int
    gps_nsec: int
    tbase: float
    first_frequency_index: int
    nsamples: int
    crc64: int
    detector: str
    comment_length: int
    byte_order: str = "<"

    @property
    def epoch(self) -> float:
        return gps_from_parts(self.gps_sec, self.gps_nsec)

    @property
    def delta_f(self) -> float:
        return 1.0 / self.tbase

    @property
    def f0(self) -> float:
        return self.first_frequency_index / self.tbase

    @property
    def frame_size(self) -> int:
        return HEADER_SIZE + self.comment_length + _BYTES_PER_BIN * self.nsamples


@dataclass(frozen=True)
class SFTFrame:
    """Location of one frame inside an SFT file, with its decoded header."""

    path: Path
    offset: int
    header: SFTHeader
    comment: str = ""


def _detect_byte_order(raw: bytes, where: str) -> str:
    for byte_order in ("<", ">"):
        (version,) = struct.unpack(byte_order + "d", raw[:8])
        if version == SFT_VERSION:
            return byte_order
    raise SFTFormatError(f"{where}: not a version-{SFT_VERSION:g} SFT frame")


def _parse_header(raw: bytes, where: str) -> SFTHeader:
    if len(raw) < HEADER_SIZE:
        raise SFTFormatError(f"{where}: truncated header ({len(raw)} of {HEADER_SIZE} bytes)")
    byte_order = _detect_byte_order(raw, where)
    fields = struct.unpack(byte_order + HEADER_FORMAT, raw[:HEADER_SIZE])
    version, gps_sec, gps_nsec, tbase, first_index, nsamples, crc, det, _pad, comment_length = fields
    try:
        detector = det.decode("ascii")
    except UnicodeDecodeError as exc:
        raise SFTFormatError(f"{where}: detector name is not ASCII") from exc
    # a subnormal tbase passes the first test but gives deltaF = inf
    if not (tbase > 0.0 and math.isfinite(tbase) and math.isfinite(1.0 / tbase)):
        raise SFTFormatError(f"{where}: invalid tbase {tbase}")
    if nsamples <= 0:
        raise SFTFormatError(f"{where}: invalid nsamples {nsamples}")
    if not 0 <= gps_nsec < 1_000_000_000:
        raise SFTFormatError(f"{where}: invalid gps_nsec {gps_nsec}")
    if comment_length < 0 or comment_length % _COMMENT_ALIGN:
        raise SFTFormatError(f"{where}: invalid comment_length {comment_length}")
    return SFTHeader(
        version=version,
        gps_sec=gps_sec,
        gps_nsec=gps_nsec,
        tbase=tbase,
        first_frequency_index=first_index,
        nsamples=nsamples,
        crc64=crc,
        detector=detector,
        comment_length=comment_length,
        byte_order=byte_order,
    )


def _decode_comment(raw: bytes) -> str:
    return raw.split(b"\0", 1)[0].decode("utf-8", errors="replace")


def iter_sft_headers(path: PathLike) -> Iterator[SFTFrame]:
    """Yield every frame in ``path`` without decoding the bin data."""
    p = Path(path)
    file_size = os.path.getsize(p)
    with p.open("rb") as fh:
        offset = 0
        while offset < file_size:
            where = f"{p.name}@{offset}"
            header = _parse_header(fh.read(HEADER_SIZE), where)
            if offset + header.frame_size > file_size:
                raise SFTFormatError(
                    f"{where}: frame of {header.frame_size} bytes runs past end of file ({file_size} bytes)"
                )
            comment = _decode_comment(fh.read(header.comment_length))
            yield SFTFrame(path=p, offset=offset, header=header, comment=comment)
            offset += header.frame_size
            fh.seek(offset)


def _read_frame_bytes(fh: BinaryIO, frame: SFTFrame) -> bytes:
    fh.seek(frame.offset)
    raw = fh.read(frame.header.frame_size)
    if len(raw) != frame.header.frame_size:
        raise SFTFormatError(f"{frame.path.name}@{frame.offset}: truncated frame")
    return raw


def _frame_crc(raw: bytes) -> int:
    zeroed = raw[:_CRC_OFFSET] + b"\0" * 8 + raw[_CRC_OFFSET + 8 : HEADER_SIZE]
    crc = crc64(zeroed)
    return crc64(raw[HEADER_SIZE:], crc)


def read_sft_frame(frame: SFTFrame, *, verify_crc: bool = True, fh: Optional[BinaryIO] = None) -> SFT:
    """Decode the SFT stored at ``frame``."""
    if fh is None:
        with frame.path.open("rb") as own:
            raw = _read_frame_bytes(own, frame)
    else:
        raw = _read_frame_bytes(fh, frame)
    header = frame.header
    if verify_crc and _frame_crc(raw) != header.crc64:
        raise SFTFormatError(f"{frame.path.name}@{frame.offset}: CRC64 checksum mismatch")
    start = HEADER_SIZE + header.comment_length
    data = np.frombuffer(raw, dtype=np.dtype(header.byte_order + "c8"), count=header.nsamples, offset=start)
    return SFT(
        name=header.detector,
        epoch=header.epoch,
        f0=header.f0,
        delta_f=header.delta_f,
        data=data.astype(np.complex64),
    )


def read_sft_file(path: PathLike, *, verify_crc: bool = True) -> SFTVector:
    """Read every SFT frame stored in ``path``."""
    frames = list(iter_sft_headers(path))
    with Path(path).open("rb") as fh:
        return [read_sft_frame(frame, verify_crc=verify_crc, fh=fh) for frame in frames]


def _encode_comment(comment: str) -> bytes:
    if not comment:
        return b""
    raw = comment.encode("utf-8") + b"\0"
    pad = (-len(raw)) % _COMMENT_ALIGN
    return raw + b"\0" * pad


def encode_sft_frame(sft: SFT, *, comment: str = "", byte_order: str = "<") -> bytes:
    """Serialise one SFT into a version-2 frame."""
    detector = sft.name[:2]
    if len(detector) != 2 or not detector.isascii() or not detector.isalnum():
        raise SFTFormatError(f"cannot derive a 2-character detector name from {sft.name!r}")
    if sft.num_bins == 0:
        raise SFTFormatError("cannot write an SFT with zero frequency bins")
    tbase = 1.0 / sft.delta_f
    index_exact = sft.f0 * tbase
    first_index = round_half_up(index_exact)
    if not math.isclose(first_index, index_exact, rel_tol=0.0, abs_tol=1e-6):
        get_logger(__name__).warning(
            "f0=%.9g Hz is not a multiple of deltaF=%.9g Hz; writing first bin index %d",
            sft.f0,
            sft.delta_f,
            first_index,
        )
    gps_sec, gps_nsec = split_gps(sft.epoch)
    comment_bytes = _encode_comment(comment)
    data_bytes = np.asarray(sft.data, dtype=np.dtype(byte_order + "c8")).tobytes()

    def _pack(crc: int) -> bytes:
        try:
            return struct.pack(
                byte_order + HEADER_FORMAT,
                SFT_VERSION,
                gps_sec,
                gps_nsec,
                tbase,
                first_index,
                sft.num_bins,
                crc,
                detector.encode("ascii"),
                b"\0\0",
                len(comment_bytes),
            )
        except struct.error as exc:
            raise SFTFormatError(f"SFT {sft.name} @ {sft.epoch} does not fit a v2 header: {exc}") from exc

    crc = crc64(_pack(0))
    crc = crc64(comment_bytes, crc)
    crc = crc64(data_bytes, crc)
    return _pack(crc) + comment_bytes + data_bytes


def write_sft_file(path: PathLike, sfts: Iterable[SFT], *, comment: str = "") -> None:
    """Write ``sfts`` as consecutive frames into ``path``, replacing it.

    Frames are encoded in full before the file is opened, so a failure never
    leaves a partially written file behind.
    """
    frames = [encode_sft_frame(sft, comment=comment) for sft in sfts]
    if not frames:
        raise SFTFormatError("no SFTs to write")
    with Path(path).open("wb") as fh:
        for frame in frames:
            fh.write(frame)
