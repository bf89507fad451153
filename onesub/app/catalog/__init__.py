"""Bundle and perk catalog models and read-only repositories."""

from .defaults import DEFAULT_BUNDLES, DEFAULT_PERKS, get_default_bundle
from .models import (
    BillingCycle,
    Bundle,
    Perk,
    PerkDelivery,
    PerkDeliveryMethod,
    ServiceOffering,
    UnlockCriterion,
    UnlockCriterionType,
)
from .repository import (
    BundleCatalog,
    InMemoryBundleCatalog,
    InMemoryPerkCatalog,
    PerkCatalog,
    require_bundle,
    require_perk,
)

__all__ = [
    "DEFAULT_BUNDLES",
    "DEFAULT_PERKS",
    "get_default_bundle",
    "BillingCycle",
    "Bundle",
    "Perk",
    "PerkDelivery",
    "PerkDeliveryMethod",
    "ServiceOffering",
    "UnlockCriterion",
    "UnlockCriterionType",
    "BundleCatalog",
    "InMemoryBundleCatalog",
    "InMemoryPerkCatalog",
    "PerkCatalog",
    "require_bundle",
    "require_perk",
]
