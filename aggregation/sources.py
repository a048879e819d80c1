"""
aggregation/sources.py

Builds the external / internal source partition consumed by the runner.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable, Mapping
from dataclasses import dataclass, field
from types import MappingProxyType
from typing import Protocol

from db.models.dojo import Dojo

logger = logging.getLogger(__name__)


class DojoSource(Protocol):
    def list_by_event_service(self, name: str) -> list[Dojo]:
        ...


@dataclass(frozen=True)
class SourcePartition:
    """
    Dojos per source kind, split into external (aggregated per sub-period)
    and internal (aggregated once per run) sources. Read-only once built.
    """

    externals: Mapping[str, list[Dojo]] = field(default_factory=dict)
    internals: Mapping[str, list[Dojo]] = field(default_factory=dict)

    def __post_init__(self) -> None:
        object.__setattr__(self, "externals", MappingProxyType(dict(self.externals)))
        object.__setattr__(self, "internals", MappingProxyType(dict(self.internals)))

    def all_kinds(self) -> list[str]:
        """Externals first, then internals; each kind once."""
        kinds = list(self.externals.keys())
        kinds.extend(kind for kind in self.internals.keys() if kind not in self.externals)
        return kinds


def _fetch_by_kind(repository: DojoSource, kinds: Iterable[str]) -> dict[str, list[Dojo]]:
    fetched: dict[str, list[Dojo]] = {}
    for kind in kinds:
        dojos = repository.list_by_event_service(kind)
        fetched[kind] = list(dojos)
        logger.info("Fetched %d dojo(s) for source kind=%s", len(dojos), kind)
    return fetched


def build_source_partition(
    repository: DojoSource,
    *,
    external_kinds: Iterable[str],
    internal_kinds: Iterable[str],
) -> SourcePartition:
    """
    Fetch dojos for every configured kind. A kind without dojos is kept with
    an empty list so its history is still deleted.
    """
    return SourcePartition(
        externals=_fetch_by_kind(repository, external_kinds),
        internals=_fetch_by_kind(repository, internal_kinds),
    )
