"""Lossless binary encoding of a `Planet`.

The payload is a little-endian ``u32`` header length, a JSON header describing
every dataclass, enum and container by tag, and the raw bytes of every numpy
array referenced from the header. Python floats are written with ``repr`` and
therefore round-trip bit for bit.
"""

from __future__ import annotations

import dataclasses
import hashlib
import json
import struct
from enum import Enum
from typing import Any, Dict, List

import numpy as np

from . import atmo, defs, report, resources, stat, state, water
from .state import Planet

FORMAT_VERSION = 1

_HEADER_LEN = struct.Struct("<I")


def _collect(modules, base: type) -> Dict[str, type]:
    out: Dict[str, type] = {}
    for module in modules:
        for name, obj in vars(module).items():
            if isinstance(obj, type) and obj.__module__ == module.__name__:
                if base is Enum and issubclass(obj, Enum):
                    out[name] = obj
                elif base is object and dataclasses.is_dataclass(obj):
                    out[name] = obj
    return out


_DATACLASSES = _collect((state, atmo, water, resources, stat, report), object)
_ENUMS = _collect((defs,), Enum)


class _Encoder:
    def __init__(self) -> None:
        self.arrays: List[np.ndarray] = []

    def encode(self, obj: Any) -> Any:
        if obj is None or isinstance(obj, (bool, str)):
            return obj
        if isinstance(obj, Enum):
            return {"__enum__": type(obj).__name__, "value": obj.value}
        if isinstance(obj, np.ndarray):
            self.arrays.append(np.ascontiguousarray(obj))
            return {"__array__": len(self.arrays) - 1}
        if isinstance(obj, np.generic):
            return obj.item()
        if isinstance(obj, (int, float)):
            return obj
        if dataclasses.is_dataclass(obj):
            fields = {f.name: self.encode(getattr(obj, f.name)) for f in dataclasses.fields(obj)}
            return {"__type__": type(obj).__name__, "fields": fields}
        if isinstance(obj, tuple):
            return {"__tuple__": [self.encode(v) for v in obj]}
        if isinstance(obj, list):
            return [self.encode(v) for v in obj]
        if isinstance(obj, dict):
            return {"__dict__": [[self.encode(k), self.encode(v)] for k, v in obj.items()]}
        raise TypeError(f"cannot serialize {type(obj).__name__}")


def _decode(obj: Any, arrays: List[np.ndarray]) -> Any:
    if isinstance(obj, list):
        return [_decode(v, arrays) for v in obj]
    if not isinstance(obj, dict):
        return obj
    if "__enum__" in obj:
        return _ENUMS[obj["__enum__"]](obj["value"])
    if "__array__" in obj:
        return arrays[obj["__array__"]]
    if "__tuple__" in obj:
        return tuple(_decode(v, arrays) for v in obj["__tuple__"])
    if "__dict__" in obj:
        return {_decode(k, arrays): _decode(v, arrays) for k, v in obj["__dict__"]}
    if "__type__" in obj:
        cls = _DATACLASSES[obj["__type__"]]
        return cls(**{k: _decode(v, arrays) for k, v in obj["fields"].items()})
    raise ValueError("malformed planet payload")


def planet_to_bytes(planet: Planet) -> bytes:
    enc = _Encoder()
    body = enc.encode(planet)
    header = {
        "version": FORMAT_VERSION,
        "planet": body,
        "arrays": [{"dtype": a.dtype.str, "shape": list(a.shape)} for a in enc.arrays],
    }
    header_bytes = json.dumps(header, separators=(",", ":")).encode("utf-8")
    chunks = [_HEADER_LEN.pack(len(header_bytes)), header_bytes]
    chunks.extend(a.tobytes() for a in enc.arrays)
    return b"".join(chunks)


def planet_from_bytes(data: bytes) -> Planet:
    """Inverse of `planet_to_bytes`; raises ``ValueError`` on malformed input."""
    if len(data) < _HEADER_LEN.size:
        raise ValueError("planet payload is truncated")
    (n,) = _HEADER_LEN.unpack_from(data, 0)
    offset = _HEADER_LEN.size + n
    if offset > len(data):
        raise ValueError("planet payload is truncated")
    try:
        header = json.loads(data[_HEADER_LEN.size : offset].decode("utf-8"))
    except (UnicodeDecodeError, json.JSONDecodeError) as e:
        raise ValueError(f"planet header is not valid JSON: {e}") from e
    if header.get("version") != FORMAT_VERSION:
        raise ValueError(f"unsupported planet format version {header.get('version')!r}")

    arrays: List[np.ndarray] = []
    for meta in header["arrays"]:
        dtype = np.dtype(meta["dtype"])
        shape = tuple(meta["shape"])
        nbytes = dtype.itemsize * int(np.prod(shape, dtype=np.int64))
        if offset + nbytes > len(data):
            raise ValueError("planet array data is truncated")
        arr = np.frombuffer(data, dtype=dtype, count=nbytes // dtype.itemsize, offset=offset).reshape(shape)
        arrays.append(arr.copy())
        offset += nbytes
    if offset != len(data):
        raise ValueError("unexpected trailing bytes in planet payload")

    try:
        planet = _decode(header["planet"], arrays)
    except (KeyError, TypeError) as e:
        raise ValueError(f"malformed planet payload: {e}") from e
    if not isinstance(planet, Planet):
        raise ValueError("payload does not contain a planet")
    return planet


def planet_digest(planet: Planet) -> str:
    """SHA-256 of the canonical encoding; equal digests mean identical state."""
    return hashlib.sha256(planet_to_bytes(planet)).hexdigest()


__all__ = ["FORMAT_VERSION", "planet_digest", "planet_from_bytes", "planet_to_bytes"]
