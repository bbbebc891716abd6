"""
mod_header.py
Read author and description from the header of a Kenshi .mod file.

Header layout (little-endian):
    4B  file type      (16 = mod, 17 = mod written by newer FCS versions)
   [4B  header size]   (type 17 only)
    4B  version
    str author         (4B length + UTF-8 bytes)
    str description
    str dependencies   (comma separated mod names)
    str references

Only the header is read.  Anything that does not look like a mod header
gives an empty ModHeader rather than an error.
"""

from __future__ import annotations

import logging
import struct
from dataclasses import dataclass, field
from pathlib import Path
from typing import BinaryIO

log = logging.getLogger(__name__)

_TYPE_MOD = 16
_TYPE_MOD_V2 = 17
_MAX_STRING = 64 * 1024


@dataclass(frozen=True)
class ModHeader:
    version: int = 0
    author: str = ""
    description: str = ""
    dependencies: list[str] = field(default_factory=list)
    references: list[str] = field(default_factory=list)


class _BadHeader(Exception):
    pass


def _read_int(f: BinaryIO) -> int:
    data = f.read(4)
    if len(data) != 4:
        raise _BadHeader("truncated")
    return struct.unpack("<i", data)[0]


def _read_str(f: BinaryIO) -> str:
    length = _read_int(f)
    if length < 0 or length > _MAX_STRING:
        raise _BadHeader(f"bad string length {length}")
    data = f.read(length)
    if len(data) != length:
        raise _BadHeader("truncated")
    return data.decode("utf-8", errors="replace")


def _split_names(value: str) -> list[str]:
    return [n.strip() for n in value.split(",") if n.strip()]


def read_mod_header(path: Path) -> ModHeader:
    """Parse the header of *path*. Unreadable or foreign files give ModHeader()."""
    try:
        with path.open("rb") as f:
            file_type = _read_int(f)
            if file_type == _TYPE_MOD_V2:
                _read_int(f)
            elif file_type != _TYPE_MOD:
                raise _BadHeader(f"unknown file type {file_type}")
            version = _read_int(f)
            author = _read_str(f)
            description = _read_str(f)
            dependencies = _split_names(_read_str(f))
            references = _split_names(_read_str(f))
    except OSError as exc:
        log.warning("Cannot read %s: %s", path, exc)
        return ModHeader()
    except _BadHeader as exc:
        log.debug("No mod header in %s: %s", path.name, exc)
        return ModHeader()
    return ModHeader(version, author, description, dependencies, references)
