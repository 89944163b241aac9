"""Versioned save container for planets.

Layout (all lengths little-endian ``u32``)::

    len | version | len | timestamp | len | name | len | metadata JSON | gzip(planet)

The planet payload is `planet_to_bytes` compressed with a fixed gzip mtime so
that saving the same planet twice yields the same bytes.
"""

from __future__ import annotations

import gzip
import json
import logging
import struct
import zlib
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Tuple

from .planet.serialize import planet_from_bytes, planet_to_bytes
from .planet.state import Planet

logger = logging.getLogger(__name__)

SAVE_VERSION = "gaiasim-save-1"

_U32 = struct.Struct("<I")


class SaveLoadError(Exception):
    """Base class of save and load failures."""


class SaveNotFoundError(SaveLoadError):
    """The save file does not exist."""


class SaveDecodeError(SaveLoadError):
    """The save file exists but cannot be decoded."""


@dataclass
class SaveHeader:
    version: str
    timestamp: str
    name: str
    metadata: Dict[str, Any] = field(default_factory=dict)


def _pack_str(s: str) -> bytes:
    b = s.encode("utf-8")
    return _U32.pack(len(b)) + b


def _read_block(data: bytes, offset: int, what: str) -> Tuple[bytes, int]:
    if offset + _U32.size > len(data):
        raise SaveDecodeError(f"truncated save: missing {what} length")
    (n,) = _U32.unpack_from(data, offset)
    offset += _U32.size
    if offset + n > len(data):
        raise SaveDecodeError(f"truncated save: {what} is shorter than declared")
    return data[offset : offset + n], offset + n


def encode_save(
    planet: Planet,
    name: str,
    metadata: Optional[Mapping[str, Any]] = None,
    *,
    timestamp: Optional[str] = None,
) -> bytes:
    if timestamp is None:
        timestamp = datetime.now(timezone.utc).isoformat()
    meta = json.dumps(dict(metadata or {}), sort_keys=True)
    payload = gzip.compress(planet_to_bytes(planet), mtime=0)
    return b"".join([_pack_str(SAVE_VERSION), _pack_str(timestamp), _pack_str(name), _pack_str(meta), payload])


def _decode_header(data: bytes) -> Tuple[SaveHeader, int]:
    offset = 0
    fields = []
    for what in ("version", "timestamp", "name", "metadata"):
        block, offset = _read_block(data, offset, what)
        try:
            fields.append(block.decode("utf-8"))
        except UnicodeDecodeError as e:
            raise SaveDecodeError(f"{what} is not valid UTF-8") from e
    version, timestamp, name, meta = fields
    if version != SAVE_VERSION:
        raise SaveDecodeError(f"unsupported save version {version!r}")
    try:
        metadata = json.loads(meta)
    except json.JSONDecodeError as e:
        raise SaveDecodeError(f"metadata is not valid JSON: {e}") from e
    if not isinstance(metadata, dict):
        raise SaveDecodeError("metadata must be a JSON object")
    return SaveHeader(version=version, timestamp=timestamp, name=name, metadata=metadata), offset


def decode_save(data: bytes) -> Tuple[SaveHeader, Planet]:
    header, offset = _decode_header(data)
    try:
        raw = gzip.decompress(data[offset:])
    except (OSError, EOFError, zlib.error) as e:
        raise SaveDecodeError(f"planet payload is not valid gzip: {e}") from e
    try:
        planet = planet_from_bytes(raw)
    except ValueError as e:
        raise SaveDecodeError(str(e)) from e
    return header, planet


def save_planet(
    path: str | Path,
    planet: Planet,
    name: Optional[str] = None,
    metadata: Optional[Mapping[str, Any]] = None,
) -> Path:
    """Write ``planet`` to ``path``; the name defaults to the planet's name."""
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    data = encode_save(planet, planet.basics.name if name is None else name, metadata)
    p.write_bytes(data)
    logger.info("saved planet to %s (%d bytes, cycle %d)", p, len(data), planet.cycles)
    return p


def _read(path: str | Path) -> bytes:
    p = Path(path)
    try:
        return p.read_bytes()
    except FileNotFoundError as e:
        raise SaveNotFoundError(f"save file not found: {p}") from e


def read_save_header(path: str | Path) -> SaveHeader:
    """Read only the header, without decoding the planet."""
    header, _ = _decode_header(_read(path))
    return header


def load_planet(path: str | Path) -> Tuple[SaveHeader, Planet]:
    header, planet = decode_save(_read(path))
    logger.info("loaded planet %r from %s (cycle %d)", header.name, path, planet.cycles)
    return header, planet


__all__ = [
    "SAVE_VERSION",
    "SaveDecodeError",
    "SaveHeader",
    "SaveLoadError",
    "SaveNotFoundError",
    "decode_save",
    "encode_save",
    "load_planet",
    "read_save_header",
    "save_planet",
]
