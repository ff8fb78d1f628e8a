"""
Spectral Curve Codec

Binary layout of a persisted spectral curve: a little-endian u64 element count
followed by that many little-endian f64 values. Bare f64 arrays (no count
prefix) are accepted on decode.
"""

import struct
from typing import Sequence, Union

import numpy as np

_COUNT = struct.Struct("<Q")
_F64 = np.dtype("<f8")


class CurveCodecError(ValueError):
    """Blob is not a valid encoded curve"""

    pass


def decode_curve(blob: Union[bytes, bytearray, memoryview]) -> np.ndarray:
    """
    Decode a stored spectral curve blob.

    Args:
        blob: raw column value

    Returns:
        float64 array of the stored samples

    Raises:
        CurveCodecError: length does not match either layout
    """
    data = bytes(blob)

    if len(data) >= _COUNT.size:
        (count,) = _COUNT.unpack_from(data, 0)
        if len(data) == _COUNT.size + count * _F64.itemsize:
            return np.frombuffer(data, dtype=_F64, count=count, offset=_COUNT.size).astype(np.float64)

    if data and len(data) % _F64.itemsize == 0:
        return np.frombuffer(data, dtype=_F64).astype(np.float64)

    raise CurveCodecError(f"Cannot decode spectral curve from {len(data)} bytes")


def encode_curve(values: Union[Sequence[float], np.ndarray]) -> bytes:
    arr = np.asarray(values, dtype=_F64).ravel()
    return _COUNT.pack(arr.size) + arr.tobytes()
