"""
tests/test_source_partition.py
"""

from __future__ import annotations

import pytest

from aggregation.sources import SourcePartition, build_source_partition


class FakeDojoRepository:
    def __init__(self, by_kind: dict[str, list]) -> None:
        self.by_kind = by_kind
        self.calls: list[str] = []

    def list_by_event_service(self, name: str) -> list:
        self.calls.append(name)
        return list(self.by_kind.get(name, []))


class TestBuildSourcePartition:
    def test_splits_external_and_internal_kinds(self) -> None:
        repository = FakeDojoRepository({"connpass": ["a", "b"], "static_json": ["c"]})

        partition = build_source_partition(
            repository,
            external_kinds=["connpass", "doorkeeper"],
            internal_kinds=["static_json"],
        )

        assert dict(partition.externals) == {"connpass": ["a", "b"], "doorkeeper": []}
        assert dict(partition.internals) == {"static_json": ["c"]}
        assert repository.calls == ["connpass", "doorkeeper", "static_json"]

    def test_kind_without_dojos_is_kept(self) -> None:
        partition = build_source_partition(FakeDojoRepository({}), external_kinds=["connpass"], internal_kinds=[])
        assert partition.all_kinds() == ["connpass"]

    def test_external_order_is_preserved(self) -> None:
        partition = build_source_partition(
            FakeDojoRepository({}),
            external_kinds=["doorkeeper", "connpass"],
            internal_kinds=[],
        )
        assert list(partition.externals) == ["doorkeeper", "connpass"]


class TestSourcePartition:
    def test_all_kinds_lists_externals_first_without_duplicates(self) -> None:
        partition = SourcePartition(
            externals={"connpass": [], "doorkeeper": []},
            internals={"static_json": [], "connpass": []},
        )
        assert partition.all_kinds() == ["connpass", "doorkeeper", "static_json"]

    def test_partition_is_read_only(self) -> None:
        partition = SourcePartition(externals={"connpass": []})

        with pytest.raises(TypeError):
            partition.externals["doorkeeper"] = []  # type: ignore[index]
        with pytest.raises(AttributeError):
            partition.internals = {}  # type: ignore[misc]

    def test_source_mapping_is_copied(self) -> None:
        externals = {"connpass": []}
        partition = SourcePartition(externals=externals)
        externals["doorkeeper"] = []
        assert list(partition.externals) == ["connpass"]
