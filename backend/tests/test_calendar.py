import pytest

from models import EventRSVP, Notification


def _create(client, auth, group, uid="bob", **extra):
    payload = {
        "title": "Midterm review",
        "startTime": "2024-03-01T14:00:00Z",
        "endTime": "2024-03-01T16:00:00Z",
        "location": "Library",
    }
    payload.update(extra)
    return client.post(f"/api/groups/{group.id}/calendar", json=payload, headers=auth(uid))


@pytest.fixture
def event(client, auth, group):
    return _create(client, auth, group).get_json()


def test_create_event_notifies_members(client, auth, users, group):
    resp = _create(client, auth, group)
    assert resp.status_code == 201
    body = resp.get_json()
    assert body["startTime"] == "2024-03-01T14:00:00"
    assert body["userRsvp"] is None
    assert Notification.query.filter_by(related_id=body["id"], type="EVENT_CREATED").count() == 3


@pytest.mark.parametrize("payload", [
    {"title": ""},
    {"startTime": "not a date"},
    {"endTime": "2024-03-01T10:00:00Z"},
])
def test_create_event_validation(client, auth, group, payload):
    assert _create(client, auth, group, **payload).status_code == 400


def test_list_orders_by_start_and_filters_range(client, auth, group):
    _create(client, auth, group, title="Late", startTime="2024-05-01T10:00:00Z", endTime="2024-05-01T11:00:00Z")
    _create(client, auth, group, title="Early", startTime="2024-02-01T10:00:00Z", endTime="2024-02-01T11:00:00Z")
    url = f"/api/groups/{group.id}/calendar"
    assert [e["title"] for e in client.get(url, headers=auth("alice")).get_json()] == ["Early", "Late"]
    ranged = client.get(url + "?startDate=2024-04-01T00:00:00Z&endDate=2024-06-01T00:00:00Z", headers=auth("alice"))
    assert [e["title"] for e in ranged.get_json()] == ["Late"]


def test_rsvp_create_update_and_delete(client, auth, users, group, event):
    url = f"/api/groups/{group.id}/calendar/{event['id']}/rsvp"
    created = client.post(url, json={"status": "GOING"}, headers=auth("alice"))
    assert created.status_code == 201
    updated = client.post(url, json={"status": "NOT_GOING"}, headers=auth("alice"))
    assert updated.status_code == 200
    assert updated.get_json()["status"] == "NOT_GOING"

    [listed] = client.get(f"/api/groups/{group.id}/calendar", headers=auth("alice")).get_json()
    assert listed["userRsvp"] == {"status": "NOT_ATTENDING"}
    assert listed["_count"]["rsvps"] == 1

    assert client.delete(url, headers=auth("alice")).status_code == 200
    assert EventRSVP.query.count() == 0
    assert client.delete(url, headers=auth("alice")).status_code == 404


def test_rsvp_invalid_status(client, auth, group, event):
    resp = client.post(f"/api/groups/{group.id}/calendar/{event['id']}/rsvp", json={"status": "LATE"},
                       headers=auth("alice"))
    assert resp.status_code == 400
    assert resp.get_json() == {"error": "Valid status is required (GOING, MAYBE, NOT_GOING)"}


def test_rsvp_non_member(client, auth, group, event):
    resp = client.post(f"/api/groups/{group.id}/calendar/{event['id']}/rsvp", json={"status": "GOING"},
                       headers=auth("dave"))
    assert resp.status_code == 403
