"""
Paint Catalogue

Read-only access to the paint database and JSON paint lists.

The database holds one table per brand. Each row carries the paint id
(`_id`), its binary-encoded 31-sample reflectance curve (`spectral_curve`)
and the precomputed D65/10° display color (`d65_10deg_hex`).
"""

import logging
import re
from pathlib import Path
from typing import Iterable, List, Optional, Sequence, Union

from sqlalchemy import column, create_engine, inspect, select, table
from sqlalchemy.engine import Engine
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.pool import StaticPool

from pigment_mixer.core.errors import MixingError
from pigment_mixer.core.paint import Paint
from pigment_mixer.core.spectral_model import N_BANDS
from pigment_mixer.utils.color_space import hex_to_rgb, rgb_to_hex
from pigment_mixer.utils.curve_codec import CurveCodecError, decode_curve
from pigment_mixer.utils.file_io import read_json

logger = logging.getLogger(__name__)

DEFAULT_DATABASE_URL = "sqlite:///./paints.db"


class CatalogueError(MixingError):
    """Catalogue data is missing or malformed"""

    pass


def validate_brand_identifier(brand: str) -> str:
    """
    Brand identifier 검증 (SQL 식별자로 사용되므로 엄격하게 제한)

    Raises:
        CatalogueError: not a lower-case snake_case identifier

    Example:
        >>> validate_brand_identifier("michael_harding")
        'michael_harding'
        >>> validate_brand_identifier("paints; DROP TABLE x")
        CatalogueError: Invalid brand identifier
    """
    if not isinstance(brand, str):
        raise CatalogueError("Brand must be a string")

    # 소문자, 숫자, 언더스코어만 허용 (최대 64자)
    if not re.match(r"^[a-z][a-z0-9_]{0,63}$", brand):
        raise CatalogueError(
            f"Invalid brand identifier: '{brand}'. "
            f"Only lower-case letters, digits and underscores allowed (max 64 chars)"
        )
    return brand


def brand_display_name(brand: str) -> str:
    """
    Example:
        >>> brand_display_name("winsor_newton_artist_oil_colour")
        'Winsor Newton Artist Oil Colour'
    """
    return " ".join(word.capitalize() for word in brand.split("_") if word)


def create_catalogue_engine(database_url: str = DEFAULT_DATABASE_URL, echo: bool = False) -> Engine:
    if database_url.startswith("sqlite"):
        return create_engine(database_url, connect_args={"check_same_thread": False}, poolclass=StaticPool, echo=echo)
    return create_engine(database_url, echo=echo)


def _normalize_hex(value: Optional[str], paint_id: str) -> Optional[str]:
    if not value:
        return None
    try:
        return rgb_to_hex(hex_to_rgb(value))
    except ValueError:
        logger.warning(f"Paint '{paint_id}' has invalid stored hex {value!r}; deriving from curve")
        return None


def _filter_ids(paints: List[Paint], paint_ids: Optional[Iterable[str]]) -> List[Paint]:
    """Keep paints whose id is requested, in catalogue order."""
    if paint_ids is None:
        return paints

    wanted = list(dict.fromkeys(paint_ids))
    selected = [p for p in paints if p.id in set(wanted)]
    missing = set(wanted) - {p.id for p in selected}
    if missing:
        logger.warning(f"Requested paints not in catalogue: {', '.join(sorted(missing))}")
    return selected


class PaintCatalogue:
    """
    Brand tables of a paint database.

    Example:
        >>> catalogue = PaintCatalogue("sqlite:///paints.db")
        >>> paints = catalogue.load_paints("michael_harding", ["titanium_white", "ivory_black"])
    """

    def __init__(self, database_url: str = DEFAULT_DATABASE_URL, engine: Optional[Engine] = None):
        self.database_url = database_url
        self.engine = engine or create_catalogue_engine(database_url)

    def list_brands(self) -> List[str]:
        """Brand tables present in the database, sorted."""
        names = inspect(self.engine).get_table_names()
        return sorted(name for name in names if re.match(r"^[a-z][a-z0-9_]{0,63}$", name))

    def load_paints(self, brand: str, paint_ids: Optional[Sequence[str]] = None) -> List[Paint]:
        """
        Load a brand's paints.

        Args:
            brand: brand table name
            paint_ids: restrict to these ids (catalogue order kept)

        Returns:
            Paints with a stored curve

        Raises:
            CatalogueError: unknown brand, unreadable table or malformed curve
        """
        brand = validate_brand_identifier(brand)
        if brand not in self.list_brands():
            raise CatalogueError(f"Unknown brand: '{brand}'")

        paint_table = table(brand, column("_id"), column("spectral_curve"), column("d65_10deg_hex"))
        try:
            with self.engine.connect() as conn:
                rows = conn.execute(select(paint_table)).all()
        except SQLAlchemyError as e:
            raise CatalogueError(f"Failed to read brand '{brand}': {e}") from e

        paints = []
        for paint_id, blob, stored_hex in rows:
            if blob is None:
                logger.warning(f"Paint '{paint_id}' ({brand}) has no spectral curve; skipped")
                continue
            try:
                curve = decode_curve(blob)
            except CurveCodecError as e:
                raise CatalogueError(f"Paint '{paint_id}' ({brand}): {e}") from e
            if curve.size != N_BANDS:
                raise CatalogueError(f"Paint '{paint_id}' ({brand}) has {curve.size} curve samples, expected {N_BANDS}")

            paints.append(Paint(id=str(paint_id), curve=curve, brand=brand, hex=_normalize_hex(stored_hex, paint_id)))

        paints = _filter_ids(paints, paint_ids)
        logger.info(f"Loaded {len(paints)} paints from '{brand}'")
        return paints

    def close(self):
        self.engine.dispose()


def load_paints_json(path: Union[str, Path], paint_ids: Optional[Sequence[str]] = None) -> List[Paint]:
    """
    Load paints from a JSON catalogue.

    Format:
        {"brand": "...", "paints": [{"id": "...", "curve": [31 floats],
                                     "hex": "#rrggbb", "role": "white"}]}
    A bare list of paint objects is also accepted. "hex" and "role" are optional.

    Raises:
        FileNotFoundError: path does not exist
        CatalogueError: malformed entries
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Paint catalogue not found: {path}")

    data = read_json(path)
    if isinstance(data, list):
        brand, entries = "", data
    else:
        brand, entries = data.get("brand", ""), data.get("paints", [])

    paints = []
    for i, entry in enumerate(entries):
        try:
            paint_id = str(entry["id"])
            curve = entry.get("curve")
            if curve is None:
                logger.warning(f"Paint '{paint_id}' has no spectral curve; skipped")
                continue
            paints.append(
                Paint(
                    id=paint_id,
                    curve=curve,
                    brand=entry.get("brand", brand),
                    hex=_normalize_hex(entry.get("hex"), paint_id),
                    role=entry.get("role"),
                )
            )
        except (KeyError, TypeError, ValueError) as e:
            raise CatalogueError(f"Invalid paint entry #{i} in {path}: {e}") from e

    paints = _filter_ids(paints, paint_ids)
    logger.info(f"Loaded {len(paints)} paints from {path}")
    return paints
