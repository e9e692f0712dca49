"""
Resource providers and binding.

A resource-backed card is only displayable when:
    1. A live provider is registered for its URI's authority
    2. Binding the URI with one of SUPPORTED_SPECS yields a descriptor
    3. That descriptor does not carry the error hint

ProviderRegistry is the in-process implementation of both collaborator
protocols. It counts open provider handles so that leaks are observable.
"""

from __future__ import annotations

import json
import logging
import threading
from contextlib import contextmanager
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Iterator, Optional, Protocol
from urllib.parse import urlparse

from .domain import ContextCardsError


logger = logging.getLogger(__name__)


# =============================================================================
# CONSTANTS
# =============================================================================

SCHEME_CONTENT = "content"

HINT_ERROR = "error"


@dataclass(frozen=True)
class NegotiationSpec:
    """A content format the caller can render, with its highest revision."""
    type: str
    revision: int = 1

    def accepts(self, other: NegotiationSpec) -> bool:
        """True if content declared with ``other`` can be rendered under self."""
        return self.type == other.type and other.revision <= self.revision


SUPPORTED_SPECS: frozenset[NegotiationSpec] = frozenset({
    NegotiationSpec("androidx.slice.BASIC", 1),
    NegotiationSpec("androidx.slice.LIST", 1),
})


# =============================================================================
# ERRORS
# =============================================================================

class ResourceError(ContextCardsError):
    """Raised by a provider or binder when a call for one URI fails."""


class HandleReleasedError(ResourceError):
    """Raised when a provider handle is released more than once."""


# =============================================================================
# COLLABORATOR PROTOCOLS
# =============================================================================

class ProviderHandle(Protocol):
    def release(self) -> None: ...


class ProviderResolver(Protocol):
    def acquire_provider(self, uri: str) -> Optional[ProviderHandle]: ...


@dataclass(frozen=True)
class ContentDescriptor:
    """Content bound from a URI. ``hints`` flags its state, e.g. HINT_ERROR."""
    uri: str
    spec: Optional[NegotiationSpec] = None
    hints: frozenset[str] = frozenset()

    def has_hint(self, hint: str) -> bool:
        return hint in self.hints


class ResourceBinder(Protocol):
    def bind(
        self,
        uri: str,
        specs: Iterable[NegotiationSpec],
    ) -> Optional[ContentDescriptor]: ...


@contextmanager
def acquired_provider(
    resolver: ProviderResolver,
    uri: str,
) -> Iterator[Optional[ProviderHandle]]:
    """
    Acquire the provider for ``uri`` and release it when the block exits.

    Yields None when no provider exists. The handle is released exactly once,
    including when the block raises.
    """
    handle = resolver.acquire_provider(uri)
    try:
        yield handle
    finally:
        if handle is not None:
            handle.release()


# =============================================================================
# IN-PROCESS REGISTRY
# =============================================================================

class RegistryHandle:
    """Provider handle issued by ProviderRegistry."""

    def __init__(self, registry: ProviderRegistry, authority: str):
        self._registry = registry
        self.authority = authority
        self.released = False

    def release(self) -> None:
        if self.released:
            raise HandleReleasedError(
                f"provider handle for '{self.authority}' already released"
            )
        self.released = True
        self._registry._on_release(self)


@dataclass
class ProviderRegistry:
    """
    Live providers keyed by URI authority, plus the descriptors they serve.

    A URI binds only if its authority is registered and a descriptor exists
    for the exact URI whose spec (if declared) is accepted by the caller.
    """
    authorities: set[str] = field(default_factory=set)
    descriptors: dict[str, ContentDescriptor] = field(default_factory=dict)
    open_handles: int = 0
    total_acquired: int = 0

    def __post_init__(self):
        self._lock = threading.Lock()

    @classmethod
    def from_dict(cls, data: dict) -> ProviderRegistry:
        """
        Build a registry from plain data::

            {
              "authorities": ["settings.slices"],
              "descriptors": {
                "content://settings.slices/intent/battery_card": {
                  "spec": {"type": "androidx.slice.LIST", "revision": 1},
                  "hints": ["error"]
                }
              }
            }
        """
        registry = cls(authorities=set(data.get("authorities", [])))
        for uri, raw in (data.get("descriptors") or {}).items():
            raw = raw or {}
            spec = None
            if raw.get("spec"):
                spec = NegotiationSpec(
                    type=raw["spec"]["type"],
                    revision=int(raw["spec"].get("revision", 1)),
                )
            registry.publish(uri, spec=spec, hints=raw.get("hints", ()))
        return registry

    @classmethod
    def from_json(cls, path: str) -> ProviderRegistry:
        try:
            data = json.loads(Path(path).read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            raise ResourceError(f"cannot read provider registry {path}: {e}")
        return cls.from_dict(data)

    def register_authority(self, authority: str) -> None:
        self.authorities.add(authority)

    def publish(
        self,
        uri: str,
        spec: Optional[NegotiationSpec] = None,
        hints: Iterable[str] = (),
    ) -> ContentDescriptor:
        """Serve a descriptor for ``uri``; registers its authority too."""
        descriptor = ContentDescriptor(uri=uri, spec=spec, hints=frozenset(hints))
        self.descriptors[uri] = descriptor
        self.authorities.add(urlparse(uri).netloc)
        return descriptor

    def acquire_provider(self, uri: str) -> Optional[RegistryHandle]:
        authority = urlparse(uri).netloc
        if authority not in self.authorities:
            return None
        with self._lock:
            self.open_handles += 1
            self.total_acquired += 1
        return RegistryHandle(self, authority)

    def _on_release(self, handle: RegistryHandle) -> None:
        with self._lock:
            self.open_handles -= 1

    def bind(
        self,
        uri: str,
        specs: Iterable[NegotiationSpec],
    ) -> Optional[ContentDescriptor]:
        if urlparse(uri).netloc not in self.authorities:
            return None
        descriptor = self.descriptors.get(uri)
        if descriptor is None:
            return None
        if descriptor.spec is not None:
            if not any(spec.accepts(descriptor.spec) for spec in specs):
                logger.debug("No supported spec for %s (%s)", uri, descriptor.spec)
                return None
        return descriptor
