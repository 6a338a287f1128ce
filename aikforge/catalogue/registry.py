"""Immutable lookup tables over the template and feature declarations.

``Catalogue`` indexes features by position and stores dependency edges as
tuples of indices, so the whole structure is plain immutable data that can be
shared across threads. ``get_catalogue()`` builds the process-wide instance
once, on first use.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Iterable

from ..errors import CatalogueError, TemplateNotFoundError, ValidationError
from .features import FEATURES
from .models import Feature, Template
from .templates import TEMPLATES


def _key(name: str) -> str:
    return name.strip().lower().replace("-", "_")


class Catalogue:
    """Read-only registry of templates and features.

    Construction validates the declarations: duplicate keys or aliases,
    dependency references to unknown features, and dependency cycles all
    raise ``CatalogueError``.
    """

    def __init__(self, templates: Iterable[Template], features: Iterable[Feature]) -> None:
        self._templates: tuple[Template, ...] = tuple(templates)
        self._features: tuple[Feature, ...] = tuple(features)

        self._template_keys = self._build_keys(
            "template", ((t.slug, t.aliases) for t in self._templates)
        )
        self._feature_keys = self._build_keys(
            "feature", ((f.name, f.aliases) for f in self._features)
        )

        by_name = {f.name: i for i, f in enumerate(self._features)}
        deps: list[tuple[int, ...]] = []
        conflicts: list[tuple[int, ...]] = []
        for feature in self._features:
            for ref in (*feature.depends_on, *feature.conflicts_with):
                if ref not in by_name:
                    raise CatalogueError(
                        f"Feature '{feature.name}' references unknown feature '{ref}'"
                    )
            deps.append(tuple(by_name[d] for d in feature.depends_on))
            conflicts.append(tuple(by_name[c] for c in feature.conflicts_with))

        dependents: list[list[int]] = [[] for _ in self._features]
        for idx, edges in enumerate(deps):
            for dep in edges:
                dependents[dep].append(idx)

        self._deps: tuple[tuple[int, ...], ...] = tuple(deps)
        self._dependents: tuple[tuple[int, ...], ...] = tuple(tuple(d) for d in dependents)
        self._conflicts: tuple[tuple[int, ...], ...] = tuple(conflicts)
        self._check_acyclic()

    @staticmethod
    def _build_keys(kind: str, entries: Iterable[tuple[str, tuple[str, ...]]]) -> dict[str, int]:
        keys: dict[str, int] = {}
        for idx, (name, aliases) in enumerate(entries):
            for alias in (name, *aliases):
                k = _key(alias)
                if keys.get(k, idx) != idx:
                    raise CatalogueError(f"Duplicate {kind} key or alias '{alias}'")
                keys[k] = idx
        return keys

    def _check_acyclic(self) -> None:
        # 0 = unvisited, 1 = on the current path, 2 = done
        state = [0] * len(self._features)

        def visit(idx: int, path: list[int]) -> None:
            state[idx] = 1
            path.append(idx)
            for dep in self._deps[idx]:
                if state[dep] == 1:
                    cycle = path[path.index(dep):] + [dep]
                    names = " -> ".join(self._features[i].name for i in cycle)
                    raise CatalogueError(f"Circular feature dependency: {names}")
                if state[dep] == 0:
                    visit(dep, path)
            path.pop()
            state[idx] = 2

        for idx in range(len(self._features)):
            if state[idx] == 0:
                visit(idx, [])

    # -- Templates ---------------------------------------------------------

    @property
    def templates(self) -> tuple[Template, ...]:
        return self._templates

    def template(self, slug: str) -> Template:
        """Look up a template by slug or alias (case-insensitive)."""
        idx = self._template_keys.get(_key(slug))
        if idx is None:
            raise TemplateNotFoundError(slug)
        return self._templates[idx]

    # -- Features ----------------------------------------------------------

    @property
    def features(self) -> tuple[Feature, ...]:
        return self._features

    def feature_index(self, name: str) -> int:
        """Position of a feature given its name or alias."""
        idx = self._feature_keys.get(_key(name))
        if idx is None:
            available = ", ".join(f.name for f in self._features)
            raise ValidationError(f"Unknown feature '{name}'. Available: {available}")
        return idx

    def feature(self, name: str) -> Feature:
        return self._features[self.feature_index(name)]

    def feature_at(self, idx: int) -> Feature:
        return self._features[idx]

    def dependencies(self, idx: int) -> tuple[int, ...]:
        return self._deps[idx]

    def dependents(self, idx: int) -> tuple[int, ...]:
        return self._dependents[idx]

    def conflicts(self, idx: int) -> tuple[int, ...]:
        return self._conflicts[idx]


@lru_cache(maxsize=1)
def get_catalogue() -> Catalogue:
    """Return the process-wide catalogue, building it on first call."""
    return Catalogue(TEMPLATES, FEATURES)
