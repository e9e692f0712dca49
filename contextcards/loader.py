"""
Card Loader.

Pipeline stages:
    1. Acquire the candidate source cursor
    2. Parse rows into cards, or fall back to the static catalog when empty
    3. Filter through the eligibility checker
    4. Return the cards in source order

The cursor is closed on every exit path. A bad row or an ineligible card
only removes that one card; nothing is retried.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Optional

from .catalog import create_static_cards
from .domain import CardRecord, EligibilityVerdict
from .eligibility import EligibilityChecker, check_cards
from .host import HostContext
from .source.database import CandidateSource, CardParseError, parse_card_row


logger = logging.getLogger(__name__)


CARD_CONTENT_LOADER_ID = 1


# =============================================================================
# LOAD REPORT
# =============================================================================

@dataclass
class LoadReport:
    """
    Everything one load produced.

    ``cards`` is what gets displayed. ``exclusions`` keeps the verdict of
    every card the eligibility check dropped, for audit.
    """
    cards: list[CardRecord]
    exclusions: list[EligibilityVerdict] = field(default_factory=list)

    rows_read: int = 0
    custom_rows_skipped: int = 0
    malformed_rows: int = 0
    used_fallback: bool = False

    loaded_at: datetime = field(
        default_factory=lambda: datetime.now(timezone.utc)
    )

    @property
    def candidates_checked(self) -> int:
        return len(self.cards) + len(self.exclusions)


# =============================================================================
# LOADER
# =============================================================================

class CardLoader:

    def __init__(
        self,
        context: HostContext,
        source: CandidateSource,
        checker: Optional[EligibilityChecker] = None,
    ):
        self.context = context
        self.source = source
        self.checker = checker or EligibilityChecker(context)

    def load(self) -> list[CardRecord]:
        """Return the filtered, ordered cards to display."""
        return self.load_report().cards

    def load_report(self) -> LoadReport:
        """
        Run one load and return its report.

        Raises:
            CardSourceError: If the candidate source itself fails
        """
        candidates: list[CardRecord] = []
        report = LoadReport(cards=[])

        with self.source.get_contextual_cards() as cursor:
            if cursor.count == 0:
                report.used_fallback = True
                candidates.extend(self.create_static_cards())
            else:
                for row in cursor:
                    report.rows_read += 1
                    try:
                        card = self.parse_row(row)
                    except CardParseError as e:
                        report.malformed_rows += 1
                        logger.warning("Skipping malformed card row: %s", e)
                        continue

                    if card.is_custom_card():
                        # Custom card generation is not implemented yet;
                        # such rows are skipped.
                        report.custom_rows_skipped += 1
                    else:
                        candidates.append(card)

        for verdict in check_cards(candidates, self.checker):
            if verdict.eligible:
                report.cards.append(verdict.card)
            else:
                report.exclusions.append(verdict)

        logger.debug(
            "Loaded %d cards (%d excluded, %d custom skipped, fallback=%s)",
            len(report.cards),
            len(report.exclusions),
            report.custom_rows_skipped,
            report.used_fallback,
        )
        return report

    def parse_row(self, row) -> CardRecord:
        return parse_card_row(row)

    def create_static_cards(self) -> list[CardRecord]:
        return list(create_static_cards(self.context))
