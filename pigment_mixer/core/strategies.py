"""
Mixing Strategies

혼합 전략(MixChoice)별 후보 물감 조합 생성.

Each strategy fixes the anchor roles every candidate must contain, the roles
the remaining paints are drawn from, the allowed number of extra paints and
the roles excluded outright. Subset sizes are bounded here so the search space
is known before any optimisation starts.
"""

import itertools
import logging
import re
from dataclasses import dataclass
from enum import Enum
from typing import FrozenSet, List, Sequence, Tuple

from pigment_mixer.core.errors import EmptyCatalogueError, InsufficientPaintsError
from pigment_mixer.core.paint import Paint, PaintRole

logger = logging.getLogger(__name__)

ALL_ROLES = frozenset(PaintRole)


@dataclass(frozen=True)
class StrategySpec:
    """
    Role composition of a strategy.

    Attributes:
        anchors: roles that must each be represented by exactly one paint
        pool_roles: roles the extra paints are chosen from
        extra_sizes: allowed numbers of extra paints
        excluded: roles never used
    """

    anchors: Tuple[PaintRole, ...]
    pool_roles: FrozenSet[PaintRole]
    extra_sizes: Tuple[int, ...]
    excluded: FrozenSet[PaintRole] = frozenset()

    @property
    def min_size(self) -> int:
        return len(self.anchors) + min(self.extra_sizes)

    @property
    def max_size(self) -> int:
        return len(self.anchors) + max(self.extra_sizes)


class MixChoice(Enum):
    """Fixed set of mixing strategies, valued by their display label"""

    BLACK_WHITE_2 = "black + white + 2 colours"
    BLACK_WHITE_3 = "black + white + 3 colours"
    ALL = "all available colours"
    NEUTRAL_GREYS = "neutral greys"
    NO_BLACK = "no black"

    @property
    def label(self) -> str:
        return self.value

    @property
    def slug(self) -> str:
        return _slugify(self.value)

    @property
    def spec(self) -> StrategySpec:
        return STRATEGY_SPECS[self]

    @classmethod
    def parse(cls, value) -> "MixChoice":
        """
        Resolve a strategy from its label, enum name or slug (case-insensitive).

        Example:
            >>> MixChoice.parse("black-white-2-colours")
            <MixChoice.BLACK_WHITE_2: 'black + white + 2 colours'>
        """
        if isinstance(value, cls):
            return value

        key = _slugify(str(value))
        for choice in cls:
            if key in (choice.slug, _slugify(choice.name)):
                return choice

        valid = ", ".join(choice.slug for choice in cls)
        raise ValueError(f"Unknown mixing strategy {value!r}; expected one of: {valid}")


def _slugify(text: str) -> str:
    return re.sub(r"[^a-z0-9]+", "-", text.lower()).strip("-")


_CHROMATIC = frozenset({PaintRole.CHROMATIC})

STRATEGY_SPECS = {
    MixChoice.BLACK_WHITE_2: StrategySpec(
        anchors=(PaintRole.WHITE, PaintRole.BLACK), pool_roles=_CHROMATIC, extra_sizes=(2,)
    ),
    MixChoice.BLACK_WHITE_3: StrategySpec(
        anchors=(PaintRole.WHITE, PaintRole.BLACK), pool_roles=_CHROMATIC, extra_sizes=(3,)
    ),
    MixChoice.ALL: StrategySpec(anchors=(), pool_roles=ALL_ROLES, extra_sizes=(3, 4, 5)),
    MixChoice.NEUTRAL_GREYS: StrategySpec(anchors=(PaintRole.GREY,), pool_roles=_CHROMATIC, extra_sizes=(2,)),
    MixChoice.NO_BLACK: StrategySpec(
        anchors=(),
        pool_roles=frozenset({PaintRole.WHITE, PaintRole.GREY, PaintRole.CHROMATIC}),
        extra_sizes=(3, 4),
        excluded=frozenset({PaintRole.BLACK}),
    ),
}


def unique_paints(paints: Sequence[Paint]) -> List[Paint]:
    """Drop repeated paint ids, keeping the first occurrence."""
    seen = set()
    unique = []
    for paint in paints:
        if paint.id in seen:
            logger.warning(f"Duplicate paint id '{paint.id}' in catalogue; keeping first occurrence")
            continue
        seen.add(paint.id)
        unique.append(paint)
    return unique


def enumerate_subsets(paints: Sequence[Paint], choice: MixChoice) -> List[Tuple[Paint, ...]]:
    """
    Generate every paint subset allowed by a strategy, in catalogue order.

    Args:
        paints: candidate catalogue
        choice: mixing strategy

    Returns:
        List of subsets (anchors first, then extras)

    Raises:
        EmptyCatalogueError: no paints supplied
        InsufficientPaintsError: an anchor role is missing or the pool is too small
    """
    if not paints:
        raise EmptyCatalogueError("No paints supplied")

    spec = choice.spec
    usable = [p for p in unique_paints(paints) if p.role not in spec.excluded]

    anchor_options = []
    for role in spec.anchors:
        options = [p for p in usable if p.role == role]
        if not options:
            raise InsufficientPaintsError(f"Strategy '{choice.label}' needs a {role.value} paint; none in catalogue")
        anchor_options.append(options)

    anchor_roles = set(spec.anchors)
    pool = [p for p in usable if p.role in spec.pool_roles and p.role not in anchor_roles]
    smallest = min(spec.extra_sizes)
    if len(pool) < smallest:
        raise InsufficientPaintsError(
            f"Strategy '{choice.label}' needs at least {smallest} "
            f"{'/'.join(sorted(r.value for r in spec.pool_roles))} paints; catalogue has {len(pool)}"
        )

    subsets = []
    for anchors in itertools.product(*anchor_options):
        for size in spec.extra_sizes:
            if size > len(pool):
                continue
            for extras in itertools.combinations(pool, size):
                subsets.append(tuple(anchors) + extras)

    logger.debug(f"Strategy '{choice.label}': {len(subsets)} subsets from {len(usable)} paints")
    return subsets
