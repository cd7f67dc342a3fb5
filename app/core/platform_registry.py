"""RevPace — Revenue Platform Registry.

Defines the known revenue sources and how they are categorised on the
dashboard. When onboarding a new partner network, register it here so
ingestion, aggregation and the agent tools label it uniformly.
"""

from enum import Enum
from typing import Dict, Iterable, Optional


class PlatformCategory(str, Enum):
    """How a revenue source is grouped on the dashboard."""

    ATTRIBUTION = "attribution"  # Amazon attribution programs
    AFFILIATE = "affiliate"  # Classic affiliate networks
    FLATFEE = "flatfee"  # Fixed-fee partnerships, allocated weekly


class PlatformDefinition:
    """Describes a single revenue platform."""

    def __init__(self, key: str, display_name: str, category: PlatformCategory):
        self.key = key
        self.display_name = display_name
        self.category = category

    def __repr__(self) -> str:
        return f"<Platform {self.key} ({self.category.value})>"


# ─────────────────────────────────────────────
# PLATFORMS: Canonical Registry
# ─────────────────────────────────────────────

PLATFORMS: Dict[str, PlatformDefinition] = {
    # Attribution
    "creator-connections": PlatformDefinition(
        "creator-connections", "Creator Connections", PlatformCategory.ATTRIBUTION
    ),
    "levanta": PlatformDefinition("levanta", "Levanta", PlatformCategory.ATTRIBUTION),
    "perch": PlatformDefinition("perch", "Perch", PlatformCategory.ATTRIBUTION),
    "partnerboost": PlatformDefinition(
        "partnerboost", "PartnerBoost", PlatformCategory.ATTRIBUTION
    ),
    "archer": PlatformDefinition("archer", "Archer", PlatformCategory.ATTRIBUTION),
    # Affiliate
    "skimlinks": PlatformDefinition(
        "skimlinks", "Skimlinks", PlatformCategory.AFFILIATE
    ),
    "impact": PlatformDefinition("impact", "Impact", PlatformCategory.AFFILIATE),
    "howl": PlatformDefinition("howl", "Howl", PlatformCategory.AFFILIATE),
    "brandads": PlatformDefinition("brandads", "BrandAds", PlatformCategory.AFFILIATE),
    "awin": PlatformDefinition("awin", "Awin", PlatformCategory.AFFILIATE),
    "partnerize": PlatformDefinition(
        "partnerize", "Partnerize", PlatformCategory.AFFILIATE
    ),
    "connexity": PlatformDefinition(
        "connexity", "Connexity", PlatformCategory.AFFILIATE
    ),
    "apple": PlatformDefinition("apple", "Apple", PlatformCategory.AFFILIATE),
    "other-affiliates": PlatformDefinition(
        "other-affiliates", "Other Affiliates", PlatformCategory.AFFILIATE
    ),
}

# Display name → definition, so stored display names resolve too
_BY_DISPLAY_NAME: Dict[str, PlatformDefinition] = {
    p.display_name.lower(): p for p in PLATFORMS.values()
}


# ─────────────────────────────────────────────
# HELPERS
# ─────────────────────────────────────────────


def get_platform(name: str) -> Optional[PlatformDefinition]:
    """Look up a platform by key or display name (case-insensitive)."""
    if not name:
        return None
    needle = name.strip().lower()
    return PLATFORMS.get(needle) or _BY_DISPLAY_NAME.get(needle)


def canonical_platform_key(platform_key: str) -> str:
    """Registry key for known platforms; anything else is kept as given."""
    platform = get_platform(platform_key)
    return platform.key if platform else platform_key.strip()


def normalize_platform_key(platform_key: str) -> str:
    """Map a platform key to its display name; unknown keys pass through."""
    platform = get_platform(platform_key)
    return platform.display_name if platform else platform_key


def platform_category(
    name: str, flat_fee_partners: Iterable[str] = ()
) -> PlatformCategory:
    """Category for a platform.

    Partners with a stored flat-fee contract are always ``flatfee``;
    unknown platforms default to ``attribution``.
    """
    flat = {p.strip().lower() for p in flat_fee_partners}
    if name.strip().lower() in flat or normalize_platform_key(name).lower() in flat:
        return PlatformCategory.FLATFEE
    platform = get_platform(name)
    return platform.category if platform else PlatformCategory.ATTRIBUTION
