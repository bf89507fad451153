"""Read-only catalog access used by the rules engine."""
from __future__ import annotations

from typing import Dict, Iterable, Optional, Protocol, Sequence

from ..rules.exceptions import BundleNotFoundError, PerkNotFoundError
from .models import Bundle, Perk


class BundleCatalog(Protocol):
    """Lookup of bundle definitions by id."""

    def get_bundle(self, bundle_id: str) -> Optional[Bundle]:
        ...

    def list_bundles(self) -> Sequence[Bundle]:
        ...


class PerkCatalog(Protocol):
    """Lookup of perk definitions by id."""

    def get_perk(self, perk_id: str) -> Optional[Perk]:
        ...

    def list_perks(self) -> Sequence[Perk]:
        ...


class InMemoryBundleCatalog:
    """Bundle catalog snapshot held in memory, preserving insertion order."""

    def __init__(self, bundles: Iterable[Bundle] = ()) -> None:
        self._bundles: Dict[str, Bundle] = {bundle.id: bundle for bundle in bundles}

    def get_bundle(self, bundle_id: str) -> Optional[Bundle]:
        return self._bundles.get(bundle_id)

    def list_bundles(self) -> Sequence[Bundle]:
        return tuple(self._bundles.values())


class InMemoryPerkCatalog:
    """Perk catalog snapshot held in memory, preserving insertion order."""

    def __init__(self, perks: Iterable[Perk] = ()) -> None:
        self._perks: Dict[str, Perk] = {perk.id: perk for perk in perks}

    def get_perk(self, perk_id: str) -> Optional[Perk]:
        return self._perks.get(perk_id)

    def list_perks(self) -> Sequence[Perk]:
        return tuple(self._perks.values())


def require_bundle(catalog: BundleCatalog, bundle_id: str) -> Bundle:
    bundle = catalog.get_bundle(bundle_id)
    if bundle is None:
        raise BundleNotFoundError(f"Bundle with ID {bundle_id} not found.", detail={"bundle_id": bundle_id})
    return bundle


def require_perk(catalog: PerkCatalog, perk_id: str) -> Perk:
    perk = catalog.get_perk(perk_id)
    if perk is None:
        raise PerkNotFoundError("Perk details not found in catalog.", detail={"perk_id": perk_id})
    return perk


__all__ = [
    "BundleCatalog",
    "InMemoryBundleCatalog",
    "InMemoryPerkCatalog",
    "PerkCatalog",
    "require_bundle",
    "require_perk",
]
