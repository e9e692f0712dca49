"""
Tests for candidate sources and the static catalog.

These tests verify:
1. Rows map 1:1 to card records
2. Unknown or invalid rows raise CardParseError
3. Cursors report their count and close idempotently
4. The static catalog is fixed, ordered and fresh per call
"""

import logging

import pytest

from contextcards.catalog import (
    BATTERY_CARD_URI,
    DATA_USAGE_CARD_URI,
    DEVICE_INFO_CARD_URI,
    create_static_cards,
)
from contextcards.domain import CardType, CustomCard, ResourceCard
from contextcards.host import HostContext, InstalledPackages, PackageNotFoundError
from contextcards.resources import ProviderRegistry
from contextcards.source.database import (
    CardDatabase,
    CardParseError,
    CardSourceError,
    parse_card_row,
)


HOST_PACKAGE = "com.example.settings"


def make_context(version=None):
    packages = InstalledPackages()
    if version is not None:
        packages.install(HOST_PACKAGE, version)
    registry = ProviderRegistry()
    return HostContext(
        package_name=HOST_PACKAGE,
        packages=packages,
        resolver=registry,
        binder=registry,
    )


def fetch_rows(db):
    with db.get_contextual_cards() as cursor:
        return list(cursor)


# =============================================================================
# DATABASE TESTS
# =============================================================================

class TestCardDatabase:
    """Test the SQLite candidate source."""

    def test_empty_database_has_zero_count(self):
        db = CardDatabase()

        with db.get_contextual_cards() as cursor:
            assert cursor.count == 0
            assert list(cursor) == []

    def test_rows_ordered_by_score_then_insertion(self):
        db = CardDatabase()
        db.insert_row("low", CardType.RESOURCE_BACKED.value, "pkg", "content://a/1", score=0.1)
        db.insert_row("high", CardType.RESOURCE_BACKED.value, "pkg", "content://a/2", score=0.9)
        db.insert_row("tie", CardType.RESOURCE_BACKED.value, "pkg", "content://a/3", score=0.1)

        names = [row["name"] for row in fetch_rows(db)]

        assert names == ["high", "low", "tie"]

    def test_insert_card_round_trips_fields(self):
        db = CardDatabase()
        original = ResourceCard(
            uri="content://a/battery",
            name="battery",
            package_name="pkg",
            ranking_score=0.75,
            app_version=12,
            is_half_width=True,
        )
        db.insert_card(original)

        (row,) = fetch_rows(db)

        assert parse_card_row(row) == original

    def test_cursor_closes_once(self):
        db = CardDatabase()
        cursor = db.get_contextual_cards()

        with cursor:
            pass
        cursor.close()

        assert cursor.closed

    def test_iterating_closed_cursor_raises(self):
        db = CardDatabase()
        cursor = db.get_contextual_cards()
        cursor.close()

        with pytest.raises(CardSourceError, match="closed"):
            list(cursor)

    def test_unopenable_database_raises(self, tmp_path):
        with pytest.raises(CardSourceError, match="cannot open"):
            CardDatabase(str(tmp_path / "missing" / "cards.db"))


class TestParseCardRow:
    """Test row to record mapping."""

    def test_custom_row(self):
        db = CardDatabase()
        db.insert_row("tips", CardType.CUSTOM.value, "pkg")

        (row,) = fetch_rows(db)
        card = parse_card_row(row)

        assert isinstance(card, CustomCard)
        assert card.uri is None

    def test_unknown_type_raises(self):
        db = CardDatabase()
        db.insert_row("odd", 99, "pkg", "content://a/odd")

        (row,) = fetch_rows(db)

        with pytest.raises(CardParseError, match="unknown card type"):
            parse_card_row(row)

    def test_resource_row_without_uri_raises(self):
        db = CardDatabase()
        db.insert_row("broken", CardType.RESOURCE_BACKED.value, "pkg", None)

        (row,) = fetch_rows(db)

        with pytest.raises(CardParseError, match="broken"):
            parse_card_row(row)

    @pytest.mark.parametrize("field", ["score", "app_version"])
    def test_non_numeric_field_raises(self, field):
        db = CardDatabase()
        db.insert_row(
            "text", CardType.RESOURCE_BACKED.value, "pkg", "content://a/text",
            **{field: "high"},
        )

        (row,) = fetch_rows(db)

        with pytest.raises(CardParseError, match="text"):
            parse_card_row(row)


# =============================================================================
# STATIC CATALOG TESTS
# =============================================================================

class TestStaticCatalog:
    """Test the fallback card set."""

    def test_three_cards_in_fixed_order(self):
        cards = create_static_cards(make_context(version=42))

        assert [card.uri for card in cards] == [
            DATA_USAGE_CARD_URI,
            BATTERY_CARD_URI,
            DEVICE_INFO_CARD_URI,
        ]
        assert [card.name for card in cards] == [
            "data_usage_card",
            "battery_card",
            "device_info_card",
        ]

    def test_identity_fields_from_host(self):
        cards = create_static_cards(make_context(version=42))

        for card in cards:
            assert isinstance(card, ResourceCard)
            assert card.card_type is CardType.RESOURCE_BACKED
            assert card.ranking_score == 0.0
            assert card.package_name == HOST_PACKAGE
            assert card.app_version == 42
            assert card.is_half_width is False

    def test_uris_use_content_scheme(self):
        for card in create_static_cards(make_context(version=1)):
            assert card.uri.startswith("content://")

    def test_version_lookup_failure_uses_sentinel(self, caplog):
        with caplog.at_level(logging.ERROR, logger="contextcards.host"):
            cards = create_static_cards(make_context(version=None))

        assert len(cards) == 3
        assert all(card.app_version == -1 for card in cards)
        assert any(
            "Invalid package name" in record.getMessage() for record in caplog.records
        )

    def test_fresh_values_per_call(self):
        context = make_context(version=3)

        first = create_static_cards(context)
        second = create_static_cards(context)

        assert first == second
        assert first is not second


class TestInstalledPackages:

    def test_missing_package_raises(self):
        with pytest.raises(PackageNotFoundError):
            InstalledPackages().get_version_code("nope")
