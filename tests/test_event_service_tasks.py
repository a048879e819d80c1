"""
tests/test_event_service_tasks.py

EventServiceTask and StaticJSONTask writing EventHistory rows.
"""

from __future__ import annotations

import json
from datetime import datetime
from zoneinfo import ZoneInfo

import pytest

from aggregation.period import AggregationMode, PeriodSpec
from aggregation.tasks import EventServiceTask, StaticEventsError, StaticJSONTask
from aggregation.tasks.event_service import subperiod_end
from app.connectors.base import ConnectorFetchResult
from app.domain.service_event import ServiceEvent
from db.repositories import EventHistoryRepository

TOKYO = ZoneInfo("Asia/Tokyo")
WEEK_START = datetime(2023, 1, 2, tzinfo=TOKYO)
WEEK_END = datetime(2023, 1, 8, 23, 59, 59, 999999, tzinfo=TOKYO)


class FakeConnector:
    source = "connpass"

    def __init__(self, events: list[ServiceEvent], failed_records: int = 0) -> None:
        self.events = events
        self.failed_records = failed_records
        self.calls: list[dict] = []

    def fetch_events(self, *, group_ids, start, end) -> ConnectorFetchResult:
        self.calls.append({"group_ids": list(group_ids), "start": start, "end": end})
        return ConnectorFetchResult(source=self.source, events=list(self.events), failed_records=self.failed_records)


def _event(event_id: str, group_id: str, started_at: datetime, participants: int = 5) -> ServiceEvent:
    return ServiceEvent(
        service_name="connpass",
        group_id=group_id,
        event_id=event_id,
        event_url=f"https://connpass.example/event/{event_id}/",
        participants=participants,
        started_at=started_at,
    )


class TestSubperiodEnd:
    def test_weekly(self) -> None:
        assert subperiod_end(WEEK_START, True) == WEEK_END

    def test_monthly(self) -> None:
        assert subperiod_end(datetime(2023, 2, 1, tzinfo=TOKYO), False) == datetime(
            2023, 2, 28, 23, 59, 59, 999999, tzinfo=TOKYO
        )


class TestEventServiceTask:
    def test_stores_events_of_member_groups(self, db_session, make_dojo) -> None:
        shibuya = make_dojo("Shibuya", ("connpass", "100"), ("doorkeeper", "dk-1"))
        nerima = make_dojo("Nerima", ("connpass", "200"))
        connector = FakeConnector(
            [
                _event("e1", "100", datetime(2023, 1, 4, 19, tzinfo=TOKYO), participants=12),
                _event("e2", "200", datetime(2023, 1, 7, 10, tzinfo=TOKYO)),
                _event("e3", "999", datetime(2023, 1, 7, 10, tzinfo=TOKYO)),
            ]
        )
        task = EventServiceTask(kind="connpass", session=db_session, connector=connector)

        task.run_for_subperiod([shibuya, nerima], WEEK_START, True)

        assert connector.calls == [{"group_ids": ["100", "200"], "start": WEEK_START, "end": WEEK_END}]
        histories = EventHistoryRepository(db_session).list_for_service("connpass")
        assert [(h.event_id, h.dojo_id, h.dojo_name, h.participants) for h in histories] == [
            ("e1", shibuya.id, "Shibuya", 12),
            ("e2", nerima.id, "Nerima", 5),
        ]
        assert histories[0].service_group_id == "100"

    def test_monthly_subperiod_uses_month_end(self, db_session, make_dojo) -> None:
        dojo = make_dojo("Shibuya", ("connpass", "100"))
        connector = FakeConnector([])
        task = EventServiceTask(kind="connpass", session=db_session, connector=connector)

        task.run_for_subperiod([dojo], datetime(2023, 1, 1, tzinfo=TOKYO), False)

        assert connector.calls[0]["end"] == datetime(2023, 1, 31, 23, 59, 59, 999999, tzinfo=TOKYO)

    def test_no_group_ids_skips_fetch(self, db_session, make_dojo) -> None:
        dojo = make_dojo("Shibuya", ("doorkeeper", "dk-1"))
        connector = FakeConnector([])

        EventServiceTask(kind="connpass", session=db_session, connector=connector).run_for_subperiod(
            [dojo], WEEK_START, True
        )

        assert connector.calls == []

    def test_delete_then_rerun_is_idempotent(self, db_session, make_dojo) -> None:
        dojo = make_dojo("Shibuya", ("connpass", "100"))
        connector = FakeConnector([_event("e1", "100", datetime(2023, 1, 4, 19, tzinfo=TOKYO))])
        task = EventServiceTask(kind="connpass", session=db_session, connector=connector)
        period = PeriodSpec(mode=AggregationMode.WEEKLY, start=WEEK_START, end=WEEK_END)
        repository = EventHistoryRepository(db_session)

        for _ in range(2):
            task.delete_history(period)
            task.run_for_subperiod([dojo], WEEK_START, True)
            db_session.commit()

        assert repository.count_for_service("connpass") == 1

    def test_run_once_is_not_supported(self, db_session) -> None:
        task = EventServiceTask(kind="connpass", session=db_session, connector=FakeConnector([]))
        with pytest.raises(NotImplementedError):
            task.run_once([])


class TestStaticJSONTask:
    @pytest.fixture()
    def events_file(self, tmp_path):
        path = tmp_path / "static_events.json"

        def _write(payload) -> str:
            path.write_text(payload if isinstance(payload, str) else json.dumps(payload), encoding="utf-8")
            return str(path)

        return _write

    def test_loads_entries_of_given_dojos(self, db_session, make_dojo, events_file) -> None:
        dojo = make_dojo("Island", ("static_json", None))
        other = make_dojo("Elsewhere", ("connpass", "100"))
        path = events_file(
            [
                {"dojo_id": dojo.id, "event_id": "2023-01-14", "participants": 8, "evented_at": "2023-01-14T10:00:00+09:00"},
                {"dojo_id": other.id, "event_id": "2023-01-15", "participants": 3, "evented_at": "2023-01-15T10:00:00+09:00"},
            ]
        )

        StaticJSONTask(session=db_session, events_path=path).run_once([dojo])

        histories = EventHistoryRepository(db_session).list_for_service("static_json")
        assert len(histories) == 1
        assert histories[0].event_id == f"{dojo.id}:2023-01-14"
        assert histories[0].participants == 8
        assert histories[0].service_group_id is None

    def test_delete_history_clears_every_static_row(self, db_session, make_dojo, events_file) -> None:
        dojo = make_dojo("Island", ("static_json", None))
        path = events_file(
            [
                {"dojo_id": dojo.id, "event_id": "a", "evented_at": "2019-05-01T10:00:00+09:00"},
                {"dojo_id": dojo.id, "event_id": "b", "evented_at": "2023-01-04T10:00:00+09:00"},
            ]
        )
        task = StaticJSONTask(session=db_session, events_path=path)
        task.run_once([dojo])

        task.delete_history(PeriodSpec(mode=AggregationMode.WEEKLY, start=WEEK_START, end=WEEK_END))

        assert EventHistoryRepository(db_session).count_for_service("static_json") == 0

    def test_missing_file_raises(self, db_session, tmp_path) -> None:
        task = StaticJSONTask(session=db_session, events_path=tmp_path / "missing.json")
        with pytest.raises(StaticEventsError, match="not found"):
            task.run_once([])

    @pytest.mark.parametrize("payload", ["{not json", '{"events": []}'])
    def test_malformed_file_raises(self, db_session, events_file, payload) -> None:
        task = StaticJSONTask(session=db_session, events_path=events_file(payload))
        with pytest.raises(StaticEventsError):
            task.run_once([])

    def test_invalid_entry_raises(self, db_session, make_dojo, events_file) -> None:
        dojo = make_dojo("Island", ("static_json", None))
        path = events_file([{"dojo_id": dojo.id, "event_id": "a", "evented_at": "yesterday"}])

        with pytest.raises(StaticEventsError, match="index 0"):
            StaticJSONTask(session=db_session, events_path=path).run_once([dojo])

    def test_run_for_subperiod_is_not_supported(self, db_session, tmp_path) -> None:
        task = StaticJSONTask(session=db_session, events_path=tmp_path / "x.json")
        with pytest.raises(NotImplementedError):
            task.run_for_subperiod([], WEEK_START, True)
