"""
Static fallback catalog.

Used when the candidate source has no rows. Every call builds fresh cards;
nothing here is shared or mutable.
"""

from __future__ import annotations

from .domain import ResourceCard
from .host import HostContext
from .resources import SCHEME_CONTENT


CARD_AUTHORITY = "settings.slices"
PATH_SETTING_INTENT = "intent"

PATH_DATA_USAGE = "data_usage_card"
PATH_BATTERY_INFO = "battery_card"
PATH_DEVICE_INFO = "device_info_card"


def card_uri(path: str) -> str:
    return f"{SCHEME_CONTENT}://{CARD_AUTHORITY}/{PATH_SETTING_INTENT}/{path}"


DATA_USAGE_CARD_URI = card_uri(PATH_DATA_USAGE)
BATTERY_CARD_URI = card_uri(PATH_BATTERY_INFO)
DEVICE_INFO_CARD_URI = card_uri(PATH_DEVICE_INFO)

# Display order of the fallback set.
STATIC_CARDS: tuple[tuple[str, str], ...] = (
    (PATH_DATA_USAGE, DATA_USAGE_CARD_URI),
    (PATH_BATTERY_INFO, BATTERY_CARD_URI),
    (PATH_DEVICE_INFO, DEVICE_INFO_CARD_URI),
)


def create_static_cards(context: HostContext) -> list[ResourceCard]:
    """
    Build the fallback cards: data usage, battery, device info.

    All are resource-backed, full width, ranked 0.0, and carry the host's
    package name and version code (-1 if the lookup fails).
    """
    app_version = context.get_app_version_code()
    return [
        ResourceCard(
            uri=uri,
            name=name,
            package_name=context.package_name,
            ranking_score=0.0,
            app_version=app_version,
            is_half_width=False,
        )
        for name, uri in STATIC_CARDS
    ]
