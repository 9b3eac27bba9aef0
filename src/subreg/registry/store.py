"""Descriptor store — the authoritative set of agent specifications."""

from __future__ import annotations

import itertools
import logging
import threading
from dataclasses import dataclass
from typing import Callable

from subreg.registry.models import Capsule, HostCompatibility, Specification, Telemetry

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class StoreEntry:
    """Read-only snapshot of one registered agent, as seen by the ranker."""

    sequence: int
    capsule: Capsule
    host_compatibility: HostCompatibility | None
    success_score: float | None  # None until the first telemetry update


class DescriptorStore:
    """Owns specifications, their capsules and the alias table.

    Specifications are never handed out directly: ``get_specification``
    returns a deep copy, and telemetry is only changed through
    ``update_telemetry``. Every registration is stamped with a sequence
    number so search ties resolve in registration order.
    """

    def __init__(self) -> None:
        self._specs: dict[str, Specification] = {}
        self._capsules: dict[str, Capsule] = {}
        self._sequence: dict[str, int] = {}
        self._aliases: dict[str, str] = {}  # lowercased alias -> id
        self._counter = itertools.count()
        self._lock = threading.RLock()

    def register(self, spec: Specification) -> None:
        """Insert or replace a specification and its aliases.

        Ids always win over aliases: an alias already taken by another
        agent is dropped from the new specification, and an existing alias
        equal to the new id is taken away from its previous owner.
        """
        spec = spec.copy()
        id_key = spec.id.lower()
        with self._lock:
            if spec.id not in self._sequence:
                self._sequence[spec.id] = next(self._counter)
            else:
                logger.debug("Replacing existing subagent %s", spec.id)
                stale = [k for k, v in self._aliases.items() if v == spec.id]
                for key in stale:
                    del self._aliases[key]

            owner = self._aliases.get(id_key)
            if owner is not None and owner != spec.id and owner.lower() != id_key:
                logger.warning(
                    "Alias %r of %s dropped: it is the id of %s", spec.id, owner, spec.id
                )
                self._drop_alias(owner, id_key)

            accepted: list[str] = []
            seen = {id_key}
            for alias in spec.aliases:
                key = alias.lower()
                if key in seen:
                    if key == id_key:
                        accepted.append(alias)
                    continue
                owner = self._aliases.get(key)
                if owner is not None and owner != spec.id:
                    logger.warning(
                        "Ignoring alias %r for %s: already taken by %s",
                        alias,
                        spec.id,
                        owner,
                    )
                    continue
                seen.add(key)
                accepted.append(alias)

            spec.aliases = accepted
            for alias in accepted:
                self._aliases[alias.lower()] = spec.id
            self._aliases[id_key] = spec.id
            self._specs[spec.id] = spec
            self._capsules[spec.id] = spec.to_capsule()
        logger.debug("Registered subagent %s (%d aliases)", spec.id, len(accepted))

    def _drop_alias(self, identifier: str, key: str) -> None:
        del self._aliases[key]
        spec = self._specs[identifier]
        spec.aliases = [a for a in spec.aliases if a.lower() != key]
        self._capsules[identifier] = spec.to_capsule()

    def resolve_alias(self, token: str) -> str | None:
        """Map an id or alias (any case) to the canonical id."""
        with self._lock:
            return self._aliases.get(token.lower())

    def get_capsule(self, identifier: str) -> Capsule | None:
        with self._lock:
            return self._capsules.get(identifier)

    def get_specification(self, identifier: str) -> Specification | None:
        """Return a copy of the specification for a canonical id."""
        with self._lock:
            spec = self._specs.get(identifier)
            return spec.copy() if spec is not None else None

    def all_capsules(self) -> list[Capsule]:
        """All capsules in registration order."""
        with self._lock:
            return [self._capsules[i] for i in self._ordered_ids()]

    def all_specifications(self) -> list[Specification]:
        with self._lock:
            return [self._specs[i].copy() for i in self._ordered_ids()]

    def entries(self) -> list[StoreEntry]:
        """Snapshot of everything the ranker needs, in registration order."""
        with self._lock:
            result = []
            for identifier in self._ordered_ids():
                spec = self._specs[identifier]
                result.append(
                    StoreEntry(
                        sequence=self._sequence[identifier],
                        capsule=self._capsules[identifier],
                        host_compatibility=spec.host_compatibility,
                        success_score=(
                            spec.telemetry.success_score if spec.telemetry else None
                        ),
                    )
                )
            return result

    def update_telemetry(
        self,
        identifier: str,
        updater: Callable[[Telemetry | None], Telemetry],
    ) -> bool:
        """Replace a specification's telemetry block in place.

        ``updater`` receives the current block (None on first use) and
        returns the new one. Returns False for unknown ids.
        """
        with self._lock:
            spec = self._specs.get(identifier)
            if spec is None:
                return False
            spec.telemetry = updater(spec.telemetry)
            return True

    def ids(self) -> list[str]:
        with self._lock:
            return self._ordered_ids()

    def _ordered_ids(self) -> list[str]:
        return sorted(self._specs, key=self._sequence.__getitem__)

    def __len__(self) -> int:
        with self._lock:
            return len(self._specs)

    def __contains__(self, identifier: str) -> bool:
        with self._lock:
            return identifier in self._specs
