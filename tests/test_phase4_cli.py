"""
Tests for the contextcards CLI.

These tests verify:
1. Config is read from the environment and overridden by flags
2. add/load/check commands produce the expected output and exit codes
3. Load failures surface as exit code 1, not tracebacks
"""

import json

import pytest

from contextcards.catalog import BATTERY_CARD_URI, DATA_USAGE_CARD_URI, DEVICE_INFO_CARD_URI
from contextcards.cli.main import create_parser, format_card_row, main, resolve_config
from contextcards.cli.pipeline import build_context, run_load
from contextcards.config import DEFAULT_HOST_PACKAGE, LoaderConfig
from contextcards.domain import ResourceCard
from contextcards.source.database import CardDatabase


WIFI_URI = "content://settings.slices/intent/wifi_card"


@pytest.fixture(autouse=True)
def clean_env(monkeypatch):
    for name in (
        "CONTEXTCARDS_DB_PATH",
        "CONTEXTCARDS_HOST_PACKAGE",
        "CONTEXTCARDS_HOST_VERSION",
        "CONTEXTCARDS_PROVIDERS",
        "CONTEXTCARDS_LOG_LEVEL",
    ):
        monkeypatch.delenv(name, raising=False)


@pytest.fixture
def providers_file(tmp_path):
    path = tmp_path / "providers.json"
    path.write_text(json.dumps({
        "authorities": ["settings.slices"],
        "descriptors": {
            WIFI_URI: {"spec": {"type": "androidx.slice.LIST", "revision": 1}},
            DATA_USAGE_CARD_URI: {},
            BATTERY_CARD_URI: {"hints": ["error"]},
            DEVICE_INFO_CARD_URI: {},
        },
    }))
    return str(path)


# =============================================================================
# CONFIG TESTS
# =============================================================================

class TestConfig:

    def test_defaults(self):
        config = LoaderConfig.from_env()

        assert config.db_path == "cards.db"
        assert config.host_package == DEFAULT_HOST_PACKAGE
        assert config.host_version is None
        assert config.providers_path is None
        assert config.log_level == "WARNING"

    def test_env_values(self, monkeypatch):
        monkeypatch.setenv("CONTEXTCARDS_DB_PATH", "/tmp/x.db")
        monkeypatch.setenv("CONTEXTCARDS_HOST_VERSION", "17")
        monkeypatch.setenv("CONTEXTCARDS_LOG_LEVEL", "debug")

        config = LoaderConfig.from_env()

        assert config.db_path == "/tmp/x.db"
        assert config.host_version == 17
        assert config.log_level == "DEBUG"

    def test_flags_override_env(self, monkeypatch):
        monkeypatch.setenv("CONTEXTCARDS_DB_PATH", "/tmp/env.db")
        args = create_parser().parse_args(["--db", "/tmp/flag.db", "--version", "5", "load"])

        config = resolve_config(args)

        assert config.db_path == "/tmp/flag.db"
        assert config.host_version == 5

    def test_context_without_version_falls_back(self):
        context = build_context(LoaderConfig())

        assert context.get_app_version_code() == -1


# =============================================================================
# COMMAND TESTS
# =============================================================================

class TestCommands:

    def test_no_command_prints_help(self, capsys):
        assert main([]) == 0
        assert "usage" in capsys.readouterr().out.lower()

    def test_load_empty_database_uses_fallback(self, tmp_path, providers_file, capsys):
        db = str(tmp_path / "cards.db")

        code = main(["--db", db, "--providers", providers_file, "--version", "3", "load"])
        out = capsys.readouterr().out

        assert code == 0
        assert "static fallback" in out
        assert "data_usage_card" in out
        assert "device_info_card" in out
        assert "[error_hint] battery_card" in out

    def test_add_then_load(self, tmp_path, providers_file, capsys):
        db = str(tmp_path / "cards.db")

        assert main(["--db", db, "add", "wifi", "--uri", WIFI_URI, "--score", "0.5"]) == 0
        assert main(["--db", db, "add", "tips", "--type", "custom"]) == 0
        capsys.readouterr()

        code = main(["--db", db, "--providers", providers_file, "load"])
        out = capsys.readouterr().out

        assert code == 0
        assert "card database" in out
        assert "wifi" in out
        assert "Custom rows skipped: 1" in out

    def test_load_without_providers_excludes_everything(self, tmp_path, capsys):
        db = str(tmp_path / "cards.db")

        code = main(["--db", db, "load"])
        out = capsys.readouterr().out

        assert code == 0
        assert "No cards eligible for display." in out
        assert out.count("[provider_absent]") == 3

    def test_load_with_bad_providers_file_fails(self, tmp_path, capsys):
        db = str(tmp_path / "cards.db")

        code = main(["--db", db, "--providers", str(tmp_path / "nope.json"), "load"])

        assert code == 1
        assert "Load failed" in capsys.readouterr().out

    def test_check_eligible(self, providers_file, capsys):
        code = main(["--providers", providers_file, "check", WIFI_URI])

        assert code == 0
        assert "ELIGIBLE" in capsys.readouterr().out

    def test_check_error_hint(self, providers_file, capsys):
        code = main(["--providers", providers_file, "check", BATTERY_CARD_URI])

        assert code == 1
        assert "error_hint" in capsys.readouterr().out

    def test_check_unschemed_uri(self, providers_file, capsys):
        code = main(["--providers", providers_file, "check", "not-a-uri"])

        assert code == 1
        assert "INELIGIBLE" in capsys.readouterr().out


class TestPipeline:

    def test_run_load_with_injected_database(self, providers_file):
        db = CardDatabase()
        db.insert_row("wifi", 1, "pkg", WIFI_URI)
        config = LoaderConfig(providers_path=providers_file)

        report = run_load(config, database=db)

        assert [card.name for card in report.cards] == ["wifi"]

    def test_format_card_row(self):
        card = ResourceCard(uri=WIFI_URI, name="wifi", package_name="pkg", ranking_score=0.5)

        row = format_card_row(1, card)

        assert "RESOURCE_BACKED" in row
        assert "0.50" in row
        assert WIFI_URI in row
