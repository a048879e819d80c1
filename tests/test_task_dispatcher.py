"""
tests/test_task_dispatcher.py
"""

from __future__ import annotations

from datetime import datetime
from zoneinfo import ZoneInfo

import pytest
from conftest import RecordingTask

from aggregation.dispatcher import TaskDispatcher, TaskRegistry, UnknownSourceKindError, UnsupportedSourceRoleError
from aggregation.period import AggregationMode, PeriodSpec

TOKYO = ZoneInfo("Asia/Tokyo")
PERIOD = PeriodSpec(
    mode=AggregationMode.WEEKLY,
    start=datetime(2023, 1, 2, tzinfo=TOKYO),
    end=datetime(2023, 1, 8, 23, 59, 59, 999999, tzinfo=TOKYO),
)


@pytest.fixture()
def dispatcher(journal: list[tuple]) -> TaskDispatcher:
    return TaskDispatcher(
        TaskRegistry(
            {
                "connpass": RecordingTask("connpass", journal),
                "static_json": RecordingTask("static_json", journal),
            }
        )
    )


class TestTaskRegistry:
    def test_kinds_are_normalised(self, journal: list[tuple]) -> None:
        registry = TaskRegistry()
        registry.register(" Connpass ", RecordingTask("connpass", journal))

        assert "connpass" in registry
        assert "CONNPASS" in registry
        assert registry.kinds() == ("connpass",)

    def test_unknown_kind_lists_registered_kinds(self, journal: list[tuple]) -> None:
        registry = TaskRegistry({"doorkeeper": RecordingTask("doorkeeper", journal)})

        with pytest.raises(UnknownSourceKindError) as ctx:
            registry.resolve("meetup")

        assert ctx.value.kind == "meetup"
        assert ctx.value.registered == ("doorkeeper",)
        assert "meetup" in str(ctx.value)

    def test_non_string_membership_is_false(self) -> None:
        assert 1 not in TaskRegistry()


class TestTaskDispatcher:
    def test_routes_each_operation(self, dispatcher: TaskDispatcher, journal: list[tuple]) -> None:
        anchor = PERIOD.start

        dispatcher.delete_history("connpass", PERIOD)
        dispatcher.run_for_subperiod("connpass", [], anchor, True)
        dispatcher.run_once("static_json", [])

        assert journal == [
            ("delete", "connpass", PERIOD.start, PERIOD.end),
            ("run", "connpass", anchor, True, ()),
            ("once", "static_json", ()),
        ]

    def test_unknown_kind_raises_without_side_effects(self, dispatcher: TaskDispatcher, journal: list[tuple]) -> None:
        with pytest.raises(UnknownSourceKindError):
            dispatcher.delete_history("meetup", PERIOD)
        assert journal == []

    def test_ensure_registered_fails_on_first_unknown(self, dispatcher: TaskDispatcher) -> None:
        dispatcher.ensure_registered(["connpass", "static_json"])

        with pytest.raises(UnknownSourceKindError) as ctx:
            dispatcher.ensure_registered(["connpass", "meetup", "peatix"])
        assert ctx.value.kind == "meetup"


class OnceOnlyTask(RecordingTask):
    runs_per_subperiod = False


class SubperiodOnlyTask(RecordingTask):
    runs_once = False


class TestRoleSupport:
    @pytest.fixture()
    def role_dispatcher(self, journal: list[tuple]) -> TaskDispatcher:
        return TaskDispatcher(
            TaskRegistry(
                {
                    "connpass": SubperiodOnlyTask("connpass", journal),
                    "static_json": OnceOnlyTask("static_json", journal),
                }
            )
        )

    def test_matching_roles_pass(self, role_dispatcher: TaskDispatcher) -> None:
        role_dispatcher.ensure_supported(external_kinds=["connpass"], internal_kinds=["static_json"])

    def test_once_only_task_configured_as_external(self, role_dispatcher: TaskDispatcher, journal: list[tuple]) -> None:
        with pytest.raises(UnsupportedSourceRoleError) as ctx:
            role_dispatcher.ensure_supported(external_kinds=["connpass", "static_json"], internal_kinds=[])

        assert (ctx.value.kind, ctx.value.role) == ("static_json", "external")
        assert journal == []

    def test_subperiod_only_task_configured_as_internal(self, role_dispatcher: TaskDispatcher) -> None:
        with pytest.raises(UnsupportedSourceRoleError) as ctx:
            role_dispatcher.ensure_supported(external_kinds=[], internal_kinds=["connpass"])

        assert (ctx.value.kind, ctx.value.role) == ("connpass", "internal")

    def test_unknown_kind_is_reported_as_unknown(self, role_dispatcher: TaskDispatcher) -> None:
        with pytest.raises(UnknownSourceKindError):
            role_dispatcher.ensure_supported(external_kinds=["meetup"], internal_kinds=[])
