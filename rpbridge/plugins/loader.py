"""Plugin discovery and handler registration at host startup."""

from __future__ import annotations

import importlib.metadata as metadata
import inspect
import logging
from dataclasses import dataclass, field
from typing import Iterable, Iterator, Sequence

from rpbridge import __version__ as CORE_VERSION
from rpbridge.completion import drain

from .registry import HandlerRegistry
from .types import (
    PluginCompatibilityError,
    PluginDescriptor,
    PluginError,
    Registration,
)

LOG = logging.getLogger(__name__)

ENTRY_POINT_GROUP = "rpbridge.plugins"

Version = tuple[int, int, int]


def version_key(value: str) -> Version:
    """``"1.2"`` -> ``(1, 2, 0)``; non-numeric parts count as zero."""

    parts = [int(chunk) if chunk.isdigit() else 0 for chunk in value.split(".")[:3]]
    major, minor, patch = (parts + [0, 0, 0])[:3]
    return major, minor, patch


@dataclass(slots=True, frozen=True)
class PluginCandidate:
    """A descriptor found during discovery and where it came from."""

    descriptor: PluginDescriptor
    source: str

    @property
    def name(self) -> str:
        return self.descriptor.name

    @property
    def version(self) -> str:
        return self.descriptor.version

    @property
    def min_core(self) -> str:
        return getattr(self.descriptor, "min_core", "0.0.0")


@dataclass(slots=True, frozen=True)
class LoadedPlugin:
    """A plugin together with the handlers it handed to the host."""

    candidate: PluginCandidate
    registrations: Sequence[Registration] = field(default_factory=tuple)

    @property
    def name(self) -> str:
        return self.candidate.name

    @property
    def descriptor(self) -> PluginDescriptor:
        return self.candidate.descriptor


class PluginLoader:
    """Finds plugin descriptors and lets each one register its handlers."""

    def __init__(
        self,
        registry: HandlerRegistry,
        *,
        core_version: str = CORE_VERSION,
        entry_point_group: str = ENTRY_POINT_GROUP,
        builtin_plugins: Iterable[PluginDescriptor | type[PluginDescriptor]] | None = None,
    ) -> None:
        self._registry = registry
        self._core = version_key(core_version)
        self._core_version = core_version
        self._group = entry_point_group
        self._builtins = tuple(builtin_plugins or ())
        self._candidates: list[PluginCandidate] | None = None
        self._loaded: dict[str, LoadedPlugin] = {}

    def discover(self) -> list[PluginCandidate]:
        """Collect candidates; entry points win over built-ins of the same name."""

        by_name: dict[str, PluginCandidate] = {}
        for candidate in self._iter_candidates():
            by_name.setdefault(candidate.name, candidate)
        self._candidates = list(by_name.values())
        return list(self._candidates)

    def load(self) -> list[LoadedPlugin]:
        """Register handlers for every enabled, compatible plugin not yet loaded."""

        candidates = self._candidates if self._candidates is not None else self.discover()
        newly_loaded: list[LoadedPlugin] = []
        for candidate in candidates:
            if candidate.name in self._loaded or not self._admit(candidate):
                continue
            plugin = LoadedPlugin(candidate, self._register(candidate))
            self._loaded[candidate.name] = plugin
            newly_loaded.append(plugin)
        return newly_loaded

    async def shutdown(self) -> None:
        """Let detached handlers settle, then run each plugin's shutdown hook."""

        await drain()
        for plugin in self._loaded.values():
            try:
                await plugin.descriptor.on_shutdown()
            except Exception:  # pragma: no cover - defensive logging path
                LOG.exception("Plugin shutdown failed", extra={"plugin": plugin.name})

    @property
    def loaded(self) -> Sequence[LoadedPlugin]:
        return tuple(self._loaded.values())

    def _iter_candidates(self) -> Iterator[PluginCandidate]:
        entry_points = metadata.entry_points().select(group=self._group)
        for entry_point in sorted(entry_points, key=lambda ep: ep.name):
            yield PluginCandidate(_instantiate(entry_point.load()), f"entry-point:{entry_point.value}")
        for builtin in self._builtins:
            yield PluginCandidate(_instantiate(builtin), "builtin")

    def _admit(self, candidate: PluginCandidate) -> bool:
        config = self._registry.context.config
        if config is not None and not config.is_plugin_enabled(candidate.name):
            LOG.debug("Skipping disabled plugin", extra={"plugin": candidate.name})
            return False
        try:
            self._check_core(candidate)
        except PluginCompatibilityError as exc:
            LOG.warning(
                "Skipping plugin due to min_core mismatch",
                extra={"plugin": candidate.name, "min_core": candidate.min_core},
            )
            LOG.debug(str(exc))
            return False
        return True

    def _check_core(self, candidate: PluginCandidate) -> None:
        if self._core < version_key(candidate.min_core):
            raise PluginCompatibilityError(
                f"Plugin '{candidate.name}' requires core>={candidate.min_core}, found {self._core_version}"
            )

    def _register(self, candidate: PluginCandidate) -> tuple[Registration, ...]:
        """Run the plugin's ``register`` hook; undo its partial work on failure."""

        before = len(self._registry.registrations())
        try:
            candidate.descriptor.register(self._registry)
        except Exception as exc:
            self._registry.discard(self._registry.registrations()[before:])
            LOG.exception("Plugin registration failed", extra={"plugin": candidate.name})
            raise PluginError(f"Failed to register plugin '{candidate.name}'") from exc
        return tuple(self._registry.registrations()[before:])


def _instantiate(obj: object) -> PluginDescriptor:
    if inspect.isclass(obj):
        return obj()  # type: ignore[return-value]
    return obj  # type: ignore[return-value]


__all__ = ["ENTRY_POINT_GROUP", "LoadedPlugin", "PluginCandidate", "PluginLoader", "version_key"]
