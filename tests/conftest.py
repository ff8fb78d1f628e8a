import json
from pathlib import Path

import matplotlib

matplotlib.use("Agg")

import numpy as np
import pytest
from sqlalchemy import Column, LargeBinary, MetaData, Table, Text, create_engine, insert

from pigment_mixer.core.paint import Paint
from pigment_mixer.core.spectral_model import WAVELENGTHS
from pigment_mixer.utils.curve_codec import encode_curve


def sigmoid_curve(center: float, low: float, high: float, width: float = 15.0) -> np.ndarray:
    """Smooth step from `low` to `high` around `center` nm (falling when low > high)."""
    return low + (high - low) / (1.0 + np.exp(-(WAVELENGTHS - center) / width))


def bump_curve(center: float, base: float, peak: float, width: float = 40.0) -> np.ndarray:
    return base + (peak - base) * np.exp(-0.5 * ((WAVELENGTHS - center) / width) ** 2)


PAINT_CURVES = {
    "titanium_white": np.full(31, 0.9),
    "ivory_black": np.full(31, 0.04),
    "paynes_grey": sigmoid_curve(520, 0.25, 0.15, width=60.0),
    "cadmium_red": sigmoid_curve(600, 0.05, 0.85),
    "cadmium_yellow": sigmoid_curve(510, 0.06, 0.88),
    "ultramarine_blue": sigmoid_curve(490, 0.55, 0.04),
    "viridian_green": bump_curve(520, 0.04, 0.45),
}


@pytest.fixture
def tmp_json(tmp_path: Path):
    def _make(data, name="sample.json"):
        path = tmp_path / name
        path.write_text(json.dumps(data, ensure_ascii=False), encoding="utf-8")
        return path

    return _make


@pytest.fixture
def paints():
    """White, black, grey and four chromatic paints, in catalogue order"""
    return [Paint(id=pid, curve=curve, brand="test_brand") for pid, curve in PAINT_CURVES.items()]


@pytest.fixture
def paint_by_id(paints):
    return {paint.id: paint for paint in paints}


@pytest.fixture
def chromatic_paints(paint_by_id):
    return [paint_by_id[pid] for pid in ("cadmium_red", "cadmium_yellow", "ultramarine_blue", "viridian_green")]


@pytest.fixture
def paints_json(tmp_json):
    data = {
        "brand": "test_brand",
        "paints": [{"id": pid, "curve": curve.tolist()} for pid, curve in PAINT_CURVES.items()],
    }
    return tmp_json(data, name="paints.json")


@pytest.fixture
def catalogue_db(tmp_path: Path):
    """SQLite catalogue with two brand tables; returns the database URL"""
    database_url = f"sqlite:///{tmp_path / 'paints.db'}"
    engine = create_engine(database_url)
    metadata = MetaData()

    tables = {}
    for brand in ("michael_harding", "winton_oil_colour"):
        tables[brand] = Table(
            brand,
            metadata,
            Column("_id", Text, primary_key=True),
            Column("spectral_curve", LargeBinary),
            Column("d65_10deg_hex", Text),
        )
    metadata.create_all(engine)

    with engine.begin() as conn:
        conn.execute(
            insert(tables["michael_harding"]),
            [
                {"_id": pid, "spectral_curve": encode_curve(curve), "d65_10deg_hex": None}
                for pid, curve in PAINT_CURVES.items()
            ]
            + [{"_id": "unmeasured_umber", "spectral_curve": None, "d65_10deg_hex": "#635147"}],
        )
        conn.execute(
            insert(tables["winton_oil_colour"]),
            [{"_id": "titanium_white", "spectral_curve": encode_curve(np.full(31, 0.9)), "d65_10deg_hex": "#EEEEEE"}],
        )

    engine.dispose()
    return database_url
