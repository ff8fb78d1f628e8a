import struct

import numpy as np
import pytest

from pigment_mixer.utils.curve_codec import CurveCodecError, decode_curve, encode_curve


def test_encoded_layout():
    blob = encode_curve([0.25, 0.5])
    assert blob[:8] == struct.pack("<Q", 2)
    assert len(blob) == 8 + 2 * 8
    assert struct.unpack("<2d", blob[8:]) == (0.25, 0.5)


def test_decode_prefixed():
    curve = np.linspace(0.05, 0.95, 31)
    np.testing.assert_array_equal(decode_curve(encode_curve(curve)), curve)


def test_decode_bare_f64_array():
    curve = np.linspace(0.1, 0.9, 31)
    np.testing.assert_array_equal(decode_curve(curve.astype("<f8").tobytes()), curve)


def test_decode_memoryview():
    curve = np.full(31, 0.3)
    assert decode_curve(memoryview(encode_curve(curve))).size == 31


@pytest.mark.parametrize("blob", [b"", b"\x01\x02\x03", b"\x00" * 13])
def test_decode_invalid(blob):
    with pytest.raises(CurveCodecError):
        decode_curve(blob)


def test_codec_error_is_value_error():
    assert issubclass(CurveCodecError, ValueError)
