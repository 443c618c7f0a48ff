"""
Tests for decoding raw Toggl JSON into the domain model.
"""
from datetime import date, timedelta
import pytest
from togglsync.integrations.toggl_types import ReportOptions
from togglsync.normalize import (
    apply_aliases,
    decode_detailed_envelope,
    fold_recent_entries,
    resolution_for,
    resolve,
    stop_from_duration,
    summary_groups,
    to_client,
    to_detailed_items,
    to_project,
    to_time_chart,
    to_time_entry,
    to_workspace,
)


def test_workspace_id_is_decimal_string():
    workspace = to_workspace({"id": 4567890, "name": "Engineering", "premium": True})
    assert workspace.id == "4567890"
    assert workspace.name == "Engineering"


def test_resolve_walks_fallback_chain():
    assert resolve({"workspace_id": 1, "wid": 2}, "workspace_id") == 1
    assert resolve({"workspace_id": None, "wid": 2}, "workspace_id") == 2
    assert resolve({}, "workspace_id", 99) == 99
    assert resolve({"name": "x"}, "name") == "x"


def test_apply_aliases_drops_wire_names():
    data = apply_aliases({"id": 1, "wid": 5, "cid": 8, "pid": None, "uid": 3})
    assert data == {"id": 1, "workspace_id": 5, "client_id": 8, "project_id": None, "user_id": 3}


def test_client_workspace_backfilled_from_config():
    client = to_client({"id": 10, "name": "Acme"}, workspace_id=42)
    assert client.workspace_id == 42
    assert client.archived is False

    client = to_client({"id": 10, "name": "Acme", "wid": 7}, workspace_id=42)
    assert client.workspace_id == 7


def test_project_aliases_and_nullable_fields():
    project = to_project(
        {
            "id": 3,
            "wid": 42,
            "cid": 11,
            "name": "Website",
            "active": True,
            "color": "#06aaf5",
            "actual_hours": None,
            "rate": None,
        },
        workspace_id=42,
    )

    assert project.workspace_id == 42
    assert project.client_id == 11
    assert project.actual_hours == 0
    assert project.rate is None
    assert project.rate_last_updated is None
    assert project.server_deleted_at is None
    assert not hasattr(project, "wid")
    assert "cid" not in project.model_dump()


def test_project_prefers_stable_names_over_aliases():
    project = to_project(
        {"id": 3, "workspace_id": 42, "wid": 1, "client_id": 11, "cid": 2, "name": "P", "active": True},
        workspace_id=42,
    )
    assert project.workspace_id == 42
    assert project.client_id == 11


def test_time_entry_keeps_caller_fields_not_echoed():
    entry = to_time_entry(
        {"id": 99, "workspace_id": 42, "start": "2024-01-15T09:00:00Z", "duration": -1705309200, "stop": None},
        workspace_id=42,
        caller={"description": "Writing", "project_id": 5, "tags": ["deep"]},
    )

    assert entry.id == 99
    assert entry.description == "Writing"
    assert entry.project_id == 5
    assert entry.tags == ["deep"]
    assert entry.stop is None
    assert entry.running


def test_finished_entry_stop_derived_from_duration():
    entry = to_time_entry(
        {"id": 5, "duration": 1500},
        workspace_id=42,
        caller={"id": 5, "start": "2024-01-15T09:00:00Z", "stop": None, "duration": -1705309200},
    )

    assert entry.stop == "2024-01-15T09:25:00Z"
    assert not entry.running


def test_running_entry_never_keeps_a_stop():
    entry = to_time_entry(
        {"id": 6, "start": "2024-01-15T09:00:00Z", "duration": -1705309200},
        workspace_id=42,
        caller={"stop": "2024-01-15T10:00:00Z"},
    )

    assert entry.stop is None
    assert entry.running


def test_unparseable_start_leaves_stop_unset():
    assert stop_from_duration("yesterday", 60) is None
    assert stop_from_duration(None, 60) is None


def test_time_entry_remote_null_overrides_caller_stop():
    entry = to_time_entry(
        {"id": 1, "start": "2024-01-15T09:00:00Z", "duration": -1705309200, "stop": None, "description": None},
        workspace_id=42,
        caller={"stop": "2024-01-15T10:00:00Z", "description": ""},
    )
    assert entry.stop is None
    assert entry.description == ""
    assert entry.workspace_id == 42
    assert entry.tag_ids == []


@pytest.mark.parametrize(
    "payload",
    [
        [{"description": "a"}, {"description": "b"}],
        {"data": [{"description": "a"}, {"description": "b"}]},
        {"results": [{"description": "a"}, {"description": "b"}]},
    ],
)
def test_detailed_envelopes_normalize_to_same_rows(payload):
    items = to_detailed_items(payload)
    assert [i.description for i in items] == ["a", "b"]
    assert items == to_detailed_items([{"description": "a"}, {"description": "b"}])


@pytest.mark.parametrize(
    "payload",
    [None, {}, {"data": None}, {"results": "nope"}, "text", 5, {"time_entries": [{"id": 1}]}],
)
def test_unknown_detailed_envelopes_are_empty(payload):
    assert decode_detailed_envelope(payload) == []


def test_detailed_items_resolve_aliases_and_keep_extras():
    [item] = to_detailed_items([{"uid": 3, "pid": 8, "description": "x", "row_number": 1}])
    assert item.user_id == 3
    assert item.project_id == 8
    assert item.time_entries == []
    assert item.model_dump()["row_number"] == 1
    assert "uid" not in item.model_dump()


@pytest.mark.parametrize(
    "span,expected",
    [
        (0, "hour"),
        (1, "hour"),
        (2, "day"),
        (7, "day"),
        (8, "day"),
        (31, "day"),
        (32, "month"),
        (365, "month"),
    ],
)
def test_resolution_boundaries(span, expected):
    start = date(2024, 1, 1)
    assert resolution_for(start, start + timedelta(days=span)) == expected


def test_time_chart_defaults_and_resolution():
    options = ReportOptions(start_date="2024-01-01", end_date="2024-01-07")

    chart = to_time_chart({"graph": None, "resolution": "week", "groups": []}, options)

    assert chart.graph == []
    assert chart.total_seconds == 0
    assert chart.resolution == "day"
    assert chart.model_dump()["groups"] == []


def test_summary_groups_with_and_without_seconds():
    items = summary_groups(
        {
            "groups": [
                {"id": 1, "name": "Website", "seconds": 3600},
                {"id": 2, "sub_groups": [{"id": None, "seconds": 60}, {"id": 5, "seconds": 30}]},
            ]
        }
    )
    assert [(i.id, i.seconds) for i in items] == [(1, 3600), (2, 90)]
    assert summary_groups({"groups": None}) == []
    assert summary_groups(None) == []


def _entry(id, user=1, project=None, description=None, duration=60, stop="2024-01-15T10:00:00Z"):
    return {
        "id": id,
        "user_id": user,
        "project_id": project,
        "description": description,
        "start": "2024-01-15T09:00:00Z",
        "stop": stop,
        "duration": duration,
        "tag_ids": [7],
        "at": "2024-01-15T10:00:01Z",
    }


def test_fold_groups_by_user_project_description():
    raw = [
        _entry(1, project=5, description="Writing"),
        _entry(2, project=6, description="Review"),
        _entry(3, project=5, description="Writing"),
        _entry(4, user=2, project=5, description="Writing"),
        _entry(5),
    ]

    groups = fold_recent_entries(raw)

    assert [g.row_number for g in groups] == [1, 2, 3, 4]
    assert [[o.id for o in g.time_entries] for g in groups] == [[1, 3], [2], [4], [5]]
    assert all(len(g.time_entries) >= 1 for g in groups)
    assert sum(len(g.time_entries) for g in groups) == len(raw)
    assert groups[0].description == "Writing"
    assert groups[0].tag_ids == ["7"]
    assert groups[3].project_id is None
    assert groups[3].description == ""


def test_fold_running_entry_occurrence():
    [group] = fold_recent_entries([_entry(1, duration=-1705309200, stop=None)])
    [occurrence] = group.time_entries
    assert occurrence.seconds == 0
    assert occurrence.stop == occurrence.start


def test_fold_nothing():
    assert fold_recent_entries([]) == []


def test_summary_groups_skip_malformed_groups():
    items = summary_groups(
        {"groups": ["unexpected", None, {"id": 3, "sub_groups": ["x", {"seconds": 20}]}]}
    )

    assert [(i.id, i.seconds) for i in items] == [(3, 20)]
