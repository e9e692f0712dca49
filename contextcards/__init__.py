# Contextual Card Loader
"""
Acquires candidate cards, falls back to a static set when there are none,
and keeps only the cards whose backing resource is present, reachable and
free of errors.
"""

from .domain import (
    CardRecord,
    CardType,
    CustomCard,
    EligibilityVerdict,
    ExclusionReason,
    ResourceCard,
)
from .eligibility import EligibilityChecker, filter_eligible_cards
from .host import HostContext, InstalledPackages, PackageNotFoundError
from .loader import CardLoader, LoadReport
from .async_loader import AsyncCardLoader

__version__ = "0.1.0"
