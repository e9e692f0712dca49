"""
Eligibility checks for candidate cards.

A card is displayed only if its backing resource is present, reachable and
free of an error condition. Custom cards have no resource and always pass.

Checks for a resource-backed card run in this order, stopping at the first
failure:
    1. URI present and using the content scheme
    2. A live provider exists for the URI (handle released right away)
    3. The URI binds to a descriptor using SUPPORTED_SPECS
    4. The descriptor does not carry HINT_ERROR

Every failure excludes exactly that card, including exceptions raised by
the provider or binder. Nothing here raises.
"""

from __future__ import annotations

import logging
from typing import Iterable

from .domain import (
    CardRecord,
    EligibilityVerdict,
    ExclusionReason,
    uri_scheme,
)
from .host import HostContext
from .resources import (
    HINT_ERROR,
    SCHEME_CONTENT,
    SUPPORTED_SPECS,
    acquired_provider,
)


logger = logging.getLogger(__name__)


class EligibilityChecker:
    """Stateless per call; only holds the shared host context."""

    def __init__(self, context: HostContext):
        self.context = context

    def check(self, card: CardRecord) -> EligibilityVerdict:
        """Return the full verdict for one card."""
        if card.is_custom_card():
            return EligibilityVerdict.passed(card)

        uri = card.uri
        if not uri:
            logger.warning("Card %s has no uri, not eligible for display", card.name)
            return EligibilityVerdict.excluded(
                card, ExclusionReason.MISSING_URI, "card has no uri"
            )

        scheme = uri_scheme(uri)
        if scheme != SCHEME_CONTENT:
            logger.warning("Unsupported scheme for %s, not eligible for display", uri)
            return EligibilityVerdict.excluded(
                card,
                ExclusionReason.UNSUPPORTED_SCHEME,
                f"scheme '{scheme}' is not '{SCHEME_CONTENT}'",
            )

        try:
            with acquired_provider(self.context.resolver, uri) as provider:
                if provider is None:
                    logger.warning("No provider for %s, not eligible for display", uri)
                    return EligibilityVerdict.excluded(
                        card, ExclusionReason.PROVIDER_ABSENT, "no provider for uri"
                    )
        except Exception as e:
            logger.warning("Provider lookup failed for %s", uri, exc_info=True)
            return EligibilityVerdict.excluded(
                card, ExclusionReason.PROVIDER_ABSENT, str(e)
            )

        try:
            descriptor = self.context.binder.bind(uri, SUPPORTED_SPECS)
        except Exception as e:
            logger.warning(
                "Failed to bind %s, not eligible for display", uri, exc_info=True
            )
            return EligibilityVerdict.excluded(
                card, ExclusionReason.BINDING_FAILED, str(e)
            )

        if descriptor is None:
            logger.warning("Failed to bind %s, not eligible for display", uri)
            return EligibilityVerdict.excluded(
                card, ExclusionReason.BINDING_FAILED, "uri did not bind"
            )
        if descriptor.has_hint(HINT_ERROR):
            logger.warning("Bound %s with error hint, not eligible for display", uri)
            return EligibilityVerdict.excluded(
                card, ExclusionReason.ERROR_HINT, "descriptor carries error hint"
            )

        logger.debug("Card %s eligible (%s)", card.name, uri)
        return EligibilityVerdict.passed(card)

    def is_eligible(self, card: CardRecord) -> bool:
        return self.check(card).eligible


def check_cards(
    candidates: Iterable[CardRecord],
    checker: EligibilityChecker,
) -> list[EligibilityVerdict]:
    """Check candidates sequentially, in input order."""
    return [checker.check(card) for card in candidates]


def filter_eligible_cards(
    candidates: Iterable[CardRecord],
    checker: EligibilityChecker,
) -> list[CardRecord]:
    """
    Keep only eligible cards.

    The result is an order-preserving subsequence of ``candidates``:
    no reordering, no deduplication.
    """
    return [
        verdict.card
        for verdict in check_cards(candidates, checker)
        if verdict.eligible
    ]
