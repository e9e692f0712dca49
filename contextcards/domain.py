"""
Core Domain Objects for the Contextual Card Loader.

A card is either backed by a resolvable resource (addressed by a URI) or a
custom card that carries its own content. The two variants are separate
frozen dataclasses; ``CardRecord`` is their union.

Domain Objects:
    ResourceCard        — A card whose content is bound from a resource URI
    CustomCard          — A card with no resource to validate
    EligibilityVerdict  — Outcome of one eligibility check
    ExclusionReason     — Why a card was dropped from the result
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union
from urllib.parse import urlparse


# =============================================================================
# ERRORS
# =============================================================================

class ContextCardsError(Exception):
    """Base class for every error raised by this package."""


class CardValidationError(ContextCardsError):
    """Raised when a card is constructed with fields that break its variant."""


# =============================================================================
# CARD TYPES
# =============================================================================

class CardType(Enum):
    """
    Card variants, stored as integers in the candidate source.

    RESOURCE_BACKED cards must carry a schemed URI.
    CUSTOM cards may have no URI at all.
    """
    RESOURCE_BACKED = 1
    CUSTOM = 2


UNKNOWN_APP_VERSION = -1


def uri_scheme(uri: Optional[str]) -> Optional[str]:
    """Return the scheme of a URI as written, or None if it has none."""
    if not uri:
        return None
    scheme = urlparse(uri).scheme
    return uri[:len(scheme)] if scheme else None


# =============================================================================
# CARD RECORDS
# =============================================================================

@dataclass(frozen=True)
class ResourceCard:
    """
    A card whose displayable content is resolved from ``uri``.

    The URI is mandatory and must have a scheme. Whether the scheme is one
    that can actually be displayed is decided later by the eligibility check.
    """
    uri: str
    name: str
    package_name: str
    ranking_score: float = 0.0
    app_version: int = UNKNOWN_APP_VERSION
    is_half_width: bool = False

    def __post_init__(self):
        if not self.uri:
            raise CardValidationError(
                f"resource card '{self.name}' requires a uri"
            )
        if uri_scheme(self.uri) is None:
            raise CardValidationError(
                f"resource card '{self.name}' has an unschemed uri: {self.uri}"
            )

    @property
    def card_type(self) -> CardType:
        return CardType.RESOURCE_BACKED

    def is_custom_card(self) -> bool:
        return False


@dataclass(frozen=True)
class CustomCard:
    """A card that renders its own content. ``uri`` is optional."""
    name: str
    package_name: str
    ranking_score: float = 0.0
    app_version: int = UNKNOWN_APP_VERSION
    is_half_width: bool = False
    uri: Optional[str] = None

    @property
    def card_type(self) -> CardType:
        return CardType.CUSTOM

    def is_custom_card(self) -> bool:
        return True


CardRecord = Union[ResourceCard, CustomCard]


def build_card(
    card_type: CardType,
    name: str,
    package_name: str,
    uri: Optional[str] = None,
    ranking_score: float = 0.0,
    app_version: int = UNKNOWN_APP_VERSION,
    is_half_width: bool = False,
) -> CardRecord:
    """
    Build the card variant matching ``card_type``.

    Raises:
        CardValidationError: If the fields do not satisfy the variant
    """
    if card_type is CardType.RESOURCE_BACKED:
        return ResourceCard(
            uri=uri or "",
            name=name,
            package_name=package_name,
            ranking_score=ranking_score,
            app_version=app_version,
            is_half_width=is_half_width,
        )
    if card_type is CardType.CUSTOM:
        return CustomCard(
            name=name,
            package_name=package_name,
            ranking_score=ranking_score,
            app_version=app_version,
            is_half_width=is_half_width,
            uri=uri or None,
        )
    raise CardValidationError(f"unsupported card type: {card_type!r}")


# =============================================================================
# ELIGIBILITY VERDICT
# =============================================================================

class ExclusionReason(Enum):
    """
    Reasons a resource-backed card is not displayed.

    Each one excludes exactly one card and never aborts a load.
    """
    MISSING_URI = "missing_uri"
    UNSUPPORTED_SCHEME = "unsupported_scheme"
    PROVIDER_ABSENT = "provider_absent"
    BINDING_FAILED = "binding_failed"
    ERROR_HINT = "error_hint"


@dataclass(frozen=True)
class EligibilityVerdict:
    """
    Outcome of checking one card.

    On success ``reason`` and ``detail`` are always None.
    """
    card: CardRecord
    eligible: bool
    reason: Optional[ExclusionReason] = None
    detail: str = ""

    @classmethod
    def passed(cls, card: CardRecord) -> EligibilityVerdict:
        return cls(card=card, eligible=True)

    @classmethod
    def excluded(
        cls,
        card: CardRecord,
        reason: ExclusionReason,
        detail: str = "",
    ) -> EligibilityVerdict:
        return cls(card=card, eligible=False, reason=reason, detail=detail)

    def __bool__(self) -> bool:
        return self.eligible
