"""Feature resolution: dependency closure, purpose checks and render order.

The catalogue's dependency graph is index based, so every traversal here
works on integer positions and only maps back to ``Feature`` objects at the
end. Render order is a topological sort (dependencies first) with ties
broken by catalogue declaration order.
"""

from __future__ import annotations

import heapq
from collections import deque
from typing import Iterable, Optional

from pydantic import BaseModel, ConfigDict

from .catalogue.models import Feature, Purpose
from .catalogue.registry import Catalogue, get_catalogue
from .errors import CatalogueError, FeatureConflictError, PurposeConflictError


class ResolvedFeatures(BaseModel):
    """The purpose-checked transitive closure of a feature request."""
    model_config = ConfigDict(frozen=True)

    purpose: Purpose
    requested: tuple[str, ...] = ()
    order: tuple[Feature, ...] = ()

    @property
    def names(self) -> frozenset[str]:
        return frozenset(f.name for f in self.order)

    @property
    def implied(self) -> frozenset[str]:
        """Features present only because something else depends on them."""
        return self.names - set(self.requested)

    def __contains__(self, name: object) -> bool:
        return name in self.names


def resolve(
    purpose: Purpose | str,
    requested: Iterable[str],
    catalogue: Optional[Catalogue] = None,
) -> ResolvedFeatures:
    """Resolve *requested* feature names (or aliases) for a validator *purpose*.

    Raises:
        ValidationError: A name is not in the catalogue.
        PurposeConflictError: A feature in the closure needs the other purpose.
        FeatureConflictError: Two features in the closure exclude each other.
    """
    cat = catalogue or get_catalogue()
    purpose = Purpose(purpose)

    roots: list[int] = []
    for name in requested:
        idx = cat.feature_index(name)
        if idx not in roots:
            roots.append(idx)

    closure = _closure(cat, roots)

    for idx in sorted(closure):
        feature = cat.feature_at(idx)
        if not feature.applies_to(purpose):
            assert feature.purpose is not None
            raise PurposeConflictError(feature.name, feature.purpose.value, purpose.value)

    for idx in sorted(closure):
        for other in cat.conflicts(idx):
            if other in closure:
                raise FeatureConflictError(cat.feature_at(idx).name, cat.feature_at(other).name)

    order = _render_order(cat, closure)
    return ResolvedFeatures(
        purpose=purpose,
        requested=tuple(cat.feature_at(i).name for i in roots),
        order=tuple(cat.feature_at(i) for i in order),
    )


def deselect(
    selected: Iterable[str],
    name: str,
    catalogue: Optional[Catalogue] = None,
) -> list[str]:
    """Remove *name* from a selection, cascading to its dependents.

    Any selected feature that depends on *name*, directly or through other
    features, is removed as well. The remaining canonical names keep their
    original order.
    """
    cat = catalogue or get_catalogue()
    removed = _dependents_closure(cat, cat.feature_index(name))
    remaining: list[str] = []
    for item in selected:
        idx = cat.feature_index(item)
        canonical = cat.feature_at(idx).name
        if idx not in removed and canonical not in remaining:
            remaining.append(canonical)
    return remaining


def required_by(
    selected: Iterable[str],
    name: str,
    catalogue: Optional[Catalogue] = None,
) -> list[str]:
    """Selected features that keep *name* in the closure.

    An empty result means *name* can be toggled off on its own.
    """
    cat = catalogue or get_catalogue()
    target = cat.feature_index(name)
    holders: list[str] = []
    for item in selected:
        idx = cat.feature_index(item)
        if idx != target and target in _closure(cat, [idx]):
            holders.append(cat.feature_at(idx).name)
    return holders


# ---------------------------------------------------------------------------
# Graph traversal
# ---------------------------------------------------------------------------

def _closure(cat: Catalogue, roots: Iterable[int]) -> set[int]:
    seen: set[int] = set()
    queue = deque(roots)
    while queue:
        idx = queue.popleft()
        if idx in seen:
            continue
        seen.add(idx)
        queue.extend(cat.dependencies(idx))
    return seen


def _dependents_closure(cat: Catalogue, root: int) -> set[int]:
    seen: set[int] = set()
    queue = deque([root])
    while queue:
        idx = queue.popleft()
        if idx in seen:
            continue
        seen.add(idx)
        queue.extend(cat.dependents(idx))
    return seen


def _render_order(cat: Catalogue, nodes: set[int]) -> list[int]:
    """Kahn's algorithm over *nodes*; the ready set is a min-heap of indices."""
    in_degree = {idx: 0 for idx in nodes}
    for idx in nodes:
        for dep in cat.dependencies(idx):
            if dep in nodes:
                in_degree[idx] += 1

    ready = [idx for idx, degree in in_degree.items() if degree == 0]
    heapq.heapify(ready)
    result: list[int] = []
    while ready:
        idx = heapq.heappop(ready)
        result.append(idx)
        for dependent in cat.dependents(idx):
            if dependent in in_degree:
                in_degree[dependent] -= 1
                if in_degree[dependent] == 0:
                    heapq.heappush(ready, dependent)

    if len(result) != len(nodes):
        # Unreachable with a catalogue that passed its build-time cycle check.
        raise CatalogueError("Circular feature dependency detected")
    return result
