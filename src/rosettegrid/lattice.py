"""Lattice generation: hex (axial, pointy-top) and square cell packings."""

from __future__ import annotations

import math
from typing import Dict, Iterable, List

from .models import LatticeCell, LatticeKind

_SIN60 = math.sqrt(3.0) / 2.0


def hex_cell_count(rings: int) -> int:
    if rings < 0:
        raise ValueError("rings must be >= 0")
    return 3 * rings * rings + 3 * rings + 1


def square_cell_count(rings: int) -> int:
    if rings < 0:
        raise ValueError("rings must be >= 0")
    return (2 * rings + 1) ** 2


def lattice_ring(kind: LatticeKind | str, q: int, r: int) -> int:
    """Ring distance of cell ``(q, r)`` from the origin under *kind*'s metric."""
    kind = LatticeKind(kind)
    if kind is LatticeKind.SQUARE:
        return max(abs(q), abs(r))
    return max(abs(q), abs(r), abs(-q - r))


def build_square_lattice(rings: int, spacing: float) -> List[LatticeCell]:
    """Square cells row-major, ``q`` = column, ``r`` = row."""
    cells: list[LatticeCell] = []
    for row in range(-rings, rings + 1):
        for col in range(-rings, rings + 1):
            cells.append(LatticeCell(
                id=f"{col},{row}",
                x=col * spacing,
                y=row * spacing,
                ring=max(abs(col), abs(row)),
                q=col,
                r=row,
            ))
    return cells


def build_hex_lattice(rings: int, spacing: float) -> List[LatticeCell]:
    """Hex cells within *rings* of the origin, ``r`` outer loop, ``q`` inner."""
    cells: list[LatticeCell] = []
    for r in range(-rings, rings + 1):
        for q in range(-rings, rings + 1):
            s = -q - r
            ring = max(abs(q), abs(r), abs(s))
            if ring > rings:
                continue
            cells.append(LatticeCell(
                id=f"{q},{r}",
                x=spacing * (q + r / 2),
                y=spacing * _SIN60 * r,
                ring=ring,
                q=q,
                r=r,
            ))
    return cells


def build_lattice(kind: LatticeKind | str, rings: int, spacing: float) -> List[LatticeCell]:
    """Return every cell of a *kind* lattice out to *rings* (origin included)."""
    kind = LatticeKind(kind)
    if rings < 0:
        raise ValueError("rings must be >= 0")
    if not spacing > 0:
        raise ValueError("spacing must be > 0")
    if kind is LatticeKind.SQUARE:
        return build_square_lattice(rings, spacing)
    return build_hex_lattice(rings, spacing)


def cell_index(cells: Iterable[LatticeCell]) -> Dict[str, LatticeCell]:
    return {cell.id: cell for cell in cells}
