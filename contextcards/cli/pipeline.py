"""
Wiring for the CLI.

Builds the host context and loader from a LoaderConfig, then runs one load
or one eligibility check. No state is kept between invocations other than
the card database itself.
"""

from __future__ import annotations

from typing import Optional

from ..config import LoaderConfig
from ..domain import EligibilityVerdict, ResourceCard
from ..eligibility import EligibilityChecker
from ..host import HostContext, InstalledPackages
from ..loader import CardLoader, LoadReport
from ..resources import ProviderRegistry
from ..source.database import CardDatabase


def build_context(config: LoaderConfig) -> HostContext:
    """
    Host context for ``config``.

    Without a providers file the registry is empty, so every resource-backed
    card is excluded for lack of a provider.
    """
    if config.providers_path:
        registry = ProviderRegistry.from_json(config.providers_path)
    else:
        registry = ProviderRegistry()

    packages = InstalledPackages()
    if config.host_version is not None:
        packages.install(config.host_package, config.host_version)

    return HostContext(
        package_name=config.host_package,
        packages=packages,
        resolver=registry,
        binder=registry,
    )


def run_load(
    config: LoaderConfig,
    database: Optional[CardDatabase] = None,
) -> LoadReport:
    """Execute one load against the configured database and providers."""
    context = build_context(config)
    owned = database is None
    if database is None:
        database = CardDatabase(config.db_path)
    try:
        return CardLoader(context, database).load_report()
    finally:
        if owned:
            database.close()


def check_uri(config: LoaderConfig, uri: str) -> EligibilityVerdict:
    """
    Check a single resource URI as if it backed a card.

    Raises:
        CardValidationError: If the URI has no scheme
    """
    card = ResourceCard(uri=uri, name=uri, package_name=config.host_package)
    return EligibilityChecker(build_context(config)).check(card)
