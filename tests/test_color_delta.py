"""
Color Delta E Tests

CIE76 / CIE94 / CIEDE2000 against known values.
"""

import numpy as np
import pytest

from pigment_mixer.utils.color_delta import (
    DELTA_E_METHODS,
    delta_e_cie1976,
    delta_e_cie1994,
    delta_e_cie2000,
    get_delta_e,
)

# Sharma, Wu & Dalal (2005) test data: (lab1, lab2, ΔE00)
SHARMA_PAIRS = [
    ((50.0000, 2.6772, -79.7751), (50.0000, 0.0000, -82.7485), 2.0425),
    ((50.0000, 3.1571, -77.2803), (50.0000, 0.0000, -82.7485), 2.8615),
    ((50.0000, 2.5000, 0.0000), (50.0000, 0.0000, -2.5000), 4.3065),
    ((50.0000, 2.5000, 0.0000), (73.0000, 25.0000, -18.0000), 27.1492),
    ((60.2574, -34.0099, 36.2677), (60.4626, -34.1751, 39.4387), 1.2644),
    ((22.7233, 20.0904, -46.6940), (23.0331, 14.9730, -42.5619), 2.0373),
]


class TestCIE76:
    def test_identical(self):
        assert delta_e_cie1976((50, 10, -10), (50, 10, -10)) == 0.0

    def test_euclidean(self):
        assert delta_e_cie1976((50, 0, 0), (50, 3, 4)) == pytest.approx(5.0)
        assert delta_e_cie1976(np.array([0, 0, 0]), [100, 0, 0]) == pytest.approx(100.0)


class TestCIE94:
    def test_identical(self):
        assert delta_e_cie1994((60, 20, 30), (60, 20, 30)) == pytest.approx(0.0)

    def test_lightness_only(self):
        """Pure lightness difference is unweighted (SL = 1)"""
        assert delta_e_cie1994((50, 0, 0), (55, 0, 0)) == pytest.approx(5.0)

    def test_chroma_is_compressed(self):
        assert delta_e_cie1994((50, 60, 0), (50, 70, 0)) < delta_e_cie1976((50, 60, 0), (50, 70, 0))


class TestCIEDE2000:
    @pytest.mark.parametrize("lab1, lab2, expected", SHARMA_PAIRS)
    def test_reference_pairs(self, lab1, lab2, expected):
        assert delta_e_cie2000(lab1, lab2) == pytest.approx(expected, abs=1e-4)

    def test_symmetric(self):
        a, b = (60.0, 20.0, -10.0), (55.0, 25.0, -5.0)
        assert delta_e_cie2000(a, b) == pytest.approx(delta_e_cie2000(b, a))


class TestLookup:
    def test_methods(self):
        assert set(DELTA_E_METHODS) == {"cie76", "cie94", "cie2000"}
        assert get_delta_e() is delta_e_cie1976
        assert get_delta_e("CIE2000") is delta_e_cie2000

    def test_unknown(self):
        with pytest.raises(ValueError):
            get_delta_e("cmc")


class TestBatch:
    def test_batch_matches_pairs(self):
        lab1 = np.array([pair[0] for pair in SHARMA_PAIRS])
        lab2 = np.array([pair[1] for pair in SHARMA_PAIRS])

        result = delta_e_cie2000(lab1, lab2)

        assert result.shape == (len(SHARMA_PAIRS),)
        np.testing.assert_allclose(result, [pair[2] for pair in SHARMA_PAIRS], atol=1e-4)

    def test_broadcast_against_single_color(self):
        labs = np.array([[50.0, 0.0, 0.0], [60.0, 0.0, 0.0], [50.0, 3.0, 4.0]])
        np.testing.assert_allclose(delta_e_cie1976(labs, (50, 0, 0)), [0.0, 10.0, 5.0])
        assert delta_e_cie1994(labs, (50, 0, 0)).shape == (3,)

    def test_wrong_shape(self):
        with pytest.raises(ValueError):
            delta_e_cie1976((50, 0), (50, 0))
