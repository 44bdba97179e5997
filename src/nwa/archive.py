"""
nwa.archive

NWK / OVK archive indexes, file-kind detection and parallel extraction.

Both archive kinds start with an i32 entry count followed by a table of
little-endian i32 records:

  NWK (12 bytes/entry): size, offset, index            -> NWA streams
  OVK (16 bytes/entry): size, offset, index, samples   -> Ogg Vorbis files

NWK entries are decoded to WAV; OVK entries are copied out unchanged.
Entries are processed independently on a process (or thread) pool and a
failing entry only marks its own result as failed.
"""

from __future__ import annotations

import enum
import logging
import os
import struct
from concurrent.futures import ProcessPoolExecutor, ThreadPoolExecutor
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional

from .errors import ArchiveIndexError, NWAError, TruncatedStreamError, UnknownFileKindError
from .header import NWA_HEADER
from .stream import decode_stream_to_wav

logger = logging.getLogger(__name__)

INDEX_COUNT = struct.Struct("<i")
NWK_ENTRY = struct.Struct("<iii")
OVK_ENTRY = struct.Struct("<iiii")
NWA_PREFIX = struct.Struct("<hh")
OGG_MAGIC = b"OggS"
EXECUTORS = ("process", "thread")


class FileKind(enum.Enum):
    NWA = "nwa"
    NWK = "nwk"
    OVK = "ovk"


_ENTRY_STRUCTS = {FileKind.NWK: NWK_ENTRY, FileKind.OVK: OVK_ENTRY}
_ENTRY_EXT = {FileKind.NWK: ".wav", FileKind.OVK: ".ogg"}


@dataclass(frozen=True)
class IndexEntry:
    size: int
    offset: int
    index: int
    sample_count: Optional[int] = None


@dataclass(frozen=True)
class EntryResult:
    entry: Optional[IndexEntry]
    path: Optional[str] = None
    error: Optional[Exception] = None

    @property
    def ok(self) -> bool:
        return self.error is None


# ===================== Kind detection =====================

def _looks_like_nwa(data: bytes, off: int = 0) -> bool:
    if off < 0 or off + NWA_HEADER.size > len(data):
        return False
    channels, bps = NWA_PREFIX.unpack_from(data, off)
    return channels in (1, 2) and bps in (8, 16)


def _looks_like_ogg(data: bytes, off: int) -> bool:
    return off >= 0 and data[off:off + len(OGG_MAGIC)] == OGG_MAGIC


def sniff_file_kind(data: bytes) -> FileKind:
    """
    Detect the file kind from content.

    A bare stream starts with a valid channel count and bit depth. For
    archives the count is read and each index layout is tried in turn;
    the layout whose entries point at an NWA header (NWK) or an Ogg page
    (OVK) wins.
    """
    if _looks_like_nwa(data):
        return FileKind.NWA
    if len(data) >= INDEX_COUNT.size:
        (count,) = INDEX_COUNT.unpack_from(data, 0)
        for kind, check in ((FileKind.NWK, _looks_like_nwa), (FileKind.OVK, _looks_like_ogg)):
            entry = _ENTRY_STRUCTS[kind]
            n = min(max(count, 0), (len(data) - INDEX_COUNT.size) // entry.size)
            for i in range(n):
                _size, offset = struct.unpack_from("<ii", data, INDEX_COUNT.size + i * entry.size)
                if check(data, offset):
                    return kind
    raise UnknownFileKindError("input is not an NWA stream or an NWK/OVK archive")


def file_kind_from_name(path: str) -> FileKind:
    """
    Guess the kind from the file name, the way the original tool did.
    """
    name = os.path.basename(path).lower()
    for kind in (FileKind.NWA, FileKind.NWK, FileKind.OVK):
        if kind.value in name:
            return kind
    raise UnknownFileKindError(f"cannot tell the file kind of {path!r} from its name")


# ===================== Index =====================

def read_archive_index(data: bytes, kind: FileKind) -> List[IndexEntry]:
    """
    Parse and check the whole index before any entry is touched.
    """
    if kind not in _ENTRY_STRUCTS:
        raise ValueError(f"{kind.value} is not an archive kind")
    entry_struct = _ENTRY_STRUCTS[kind]

    if len(data) < INDEX_COUNT.size:
        raise TruncatedStreamError("archive too small for its entry count")
    (count,) = INDEX_COUNT.unpack_from(data, 0)
    if count <= 0:
        raise ArchiveIndexError(f"invalid index count: {count}")
    table_end = INDEX_COUNT.size + count * entry_struct.size
    if table_end > len(data):
        raise TruncatedStreamError(f"index of {count} entries overruns the archive ({len(data)} bytes)")

    entries: List[IndexEntry] = []
    for fields in entry_struct.iter_unpack(data[INDEX_COUNT.size:table_end]):
        size, offset, index = fields[:3]
        if offset <= 0 or size <= 0:
            raise ArchiveIndexError(f"invalid table entry. offset: {offset}, size: {size}")
        if offset + size > len(data):
            raise ArchiveIndexError(
                f"entry {index} ({offset}+{size}) overruns the archive ({len(data)} bytes)"
            )
        sample_count = fields[3] if len(fields) > 3 else None
        entries.append(IndexEntry(size=size, offset=offset, index=index, sample_count=sample_count))
    return entries


# ===================== Extraction =====================

def _file_stem(path: str) -> str:
    return os.path.splitext(os.path.basename(path))[0]


def entry_output_path(out_dir: str, stem: str, kind: FileKind, entry: IndexEntry) -> str:
    return os.path.join(out_dir, f"{stem}-{entry.index}{_ENTRY_EXT[kind]}")


def _write_file(path: str, data: bytes) -> None:
    with open(path, "wb") as f:
        f.write(data)


def _extract_entry(payload: bytes, kind: FileKind, entry: IndexEntry, out_path: str) -> EntryResult:
    try:
        if kind is FileKind.NWK:
            payload = decode_stream_to_wav(payload)
        _write_file(out_path, payload)
    except (NWAError, OSError) as exc:
        logger.warning("entry %d failed: %s", entry.index, exc)
        return EntryResult(entry=entry, error=exc)
    logger.info("wrote %s (%d bytes)", out_path, len(payload))
    return EntryResult(entry=entry, path=out_path)


def extract_archive(
    data: bytes,
    kind: FileKind,
    out_dir: str,
    stem: str,
    *,
    max_workers: Optional[int] = None,
    executor: str = "process",
) -> List[EntryResult]:
    """
    Extract every entry of an NWK or OVK archive held in memory.

    Returns one EntryResult per index entry, in index order. Index
    problems raise before any entry is written. executor is 'process'
    for real parallel decoding or 'thread' to stay in this process.
    """
    if executor not in EXECUTORS:
        raise ValueError(f"executor must be one of {EXECUTORS}, got {executor!r}")
    entries = read_archive_index(data, kind)
    os.makedirs(out_dir, exist_ok=True)
    workers = max(1, int(max_workers or os.cpu_count() or 1))
    logger.debug("%s archive: %d entries, %d %s workers", kind.value, len(entries), workers, executor)

    pool_cls = ThreadPoolExecutor if executor == "thread" else ProcessPoolExecutor
    results: List[EntryResult] = []
    with pool_cls(max_workers=workers) as pool:
        futures = [
            (e, pool.submit(
                _extract_entry,
                data[e.offset:e.offset + e.size],
                kind,
                e,
                entry_output_path(out_dir, stem, kind, e),
            ))
            for e in entries
        ]
        for e, fut in futures:
            try:
                results.append(fut.result())
            except Exception as exc:
                # a worker that died or raised something unexpected
                logger.warning("entry %d failed: %r", e.index, exc)
                results.append(EntryResult(entry=e, error=exc))
    return results


def _handle_nwa(data: bytes, out_dir: str, stem: str, max_workers: Optional[int], executor: str) -> List[EntryResult]:
    os.makedirs(out_dir, exist_ok=True)
    out_path = os.path.join(out_dir, f"{stem}.wav")
    wav = decode_stream_to_wav(data)
    _write_file(out_path, wav)
    logger.info("wrote %s (%d bytes)", out_path, len(wav))
    return [EntryResult(entry=None, path=out_path)]


def _handle_nwk(data: bytes, out_dir: str, stem: str, max_workers: Optional[int], executor: str) -> List[EntryResult]:
    return extract_archive(data, FileKind.NWK, out_dir, stem, max_workers=max_workers, executor=executor)


def _handle_ovk(data: bytes, out_dir: str, stem: str, max_workers: Optional[int], executor: str) -> List[EntryResult]:
    return extract_archive(data, FileKind.OVK, out_dir, stem, max_workers=max_workers, executor=executor)


_HANDLERS: Dict[FileKind, Callable[[bytes, str, str, Optional[int], str], List[EntryResult]]] = {
    FileKind.NWA: _handle_nwa,
    FileKind.NWK: _handle_nwk,
    FileKind.OVK: _handle_ovk,
}


def convert_path(
    path: str,
    out_dir: str = ".",
    *,
    kind: Optional[FileKind] = None,
    max_workers: Optional[int] = None,
    executor: str = "process",
) -> List[EntryResult]:
    """
    Convert an NWA, NWK or OVK file into out_dir.

    The kind is sniffed from content unless given. A bare NWA stream
    raises on failure; archive entries report failures in their results.
    """
    with open(path, "rb") as f:
        data = f.read()
    if kind is None:
        kind = sniff_file_kind(data)
    logger.debug("converting %s as %s", path, kind.value)
    return _HANDLERS[kind](data, out_dir, _file_stem(path), max_workers, executor)
