"""
Host application context.

The loader and eligibility checker share one HostContext: the host's own
package name, a package-metadata lookup, and the resource collaborators.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Protocol

from .domain import UNKNOWN_APP_VERSION, ContextCardsError
from .resources import ProviderResolver, ResourceBinder


logger = logging.getLogger(__name__)


class PackageNotFoundError(ContextCardsError):
    """Raised when a package lookup names a package that is not installed."""


class PackageLookup(Protocol):
    def get_version_code(self, package_name: str) -> int: ...


@dataclass
class InstalledPackages:
    """Package name -> version code."""
    versions: dict[str, int] = field(default_factory=dict)

    def install(self, package_name: str, version_code: int) -> None:
        self.versions[package_name] = version_code

    def get_version_code(self, package_name: str) -> int:
        try:
            return self.versions[package_name]
        except KeyError:
            raise PackageNotFoundError(package_name) from None


@dataclass
class HostContext:
    package_name: str
    packages: PackageLookup
    resolver: ProviderResolver
    binder: ResourceBinder

    def get_app_version_code(self) -> int:
        """
        Version code of the host package.

        A failed lookup is logged and replaced by UNKNOWN_APP_VERSION so
        callers never need to handle it.
        """
        try:
            return self.packages.get_version_code(self.package_name)
        except PackageNotFoundError:
            logger.error(
                "Invalid package name for context: %s",
                self.package_name,
                exc_info=True,
            )
        return UNKNOWN_APP_VERSION
