"""
Minimal reader for the SIF global header and descriptor table.
Only what is needed to tell a native SIF from an OCI-SIF.
"""
import struct
from pathlib import Path

SIF_MAGIC = b"SIF_MAGIC"

# launch script, magic, version, arch, id, then 8 little-endian int64 fields
_HEADER = struct.Struct("<32s10s3s3s16s8q")
# data type, used, id, group id, linked id, 7 int64 fields, name, extra
_DESCRIPTOR = struct.Struct("<i?III7q128s384s")

DATA_PARTITION = 0x4004
DATA_SIGNATURE = 0x4005
DATA_OCI_ROOT_INDEX = 0x400A
DATA_OCI_BLOB = 0x400B


def read_data_types(path: Path) -> list[int]:
    """Return the data type of every used descriptor. Raises ValueError if path is not a SIF."""
    with open(path, "rb") as f:
        raw = f.read(_HEADER.size)
        if len(raw) < _HEADER.size:
            raise ValueError(f"{path}: file too short for a SIF header")

        _, magic, _, _, _, _, _, _, total, offset, _, _, _ = _HEADER.unpack(raw)
        if not magic.startswith(SIF_MAGIC):
            raise ValueError(f"{path}: not a SIF file")

        f.seek(offset)
        types = []
        for _ in range(total):
            raw = f.read(_DESCRIPTOR.size)
            if len(raw) < _DESCRIPTOR.size:
                raise ValueError(f"{path}: truncated descriptor table")
            data_type, used = _DESCRIPTOR.unpack(raw)[:2]
            if used:
                types.append(data_type)
        return types


def is_oci_sif(path: Path) -> bool:
    return DATA_OCI_ROOT_INDEX in read_data_types(path)
