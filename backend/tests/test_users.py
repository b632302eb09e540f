from datetime import datetime

import pytest

from models import db, Connection, CalendarEvent, ForumPost, Message


def test_profile_update_and_cgpa_visibility(client, auth, users):
    resp = client.put("/api/profile", json={
        "major": "Computer Science",
        "semester": "5",
        "cgpa": "3.7",
        "skills": "python, sql",
        "interests": ["ml"],
    }, headers=auth("alice"))
    assert resp.status_code == 200
    user = resp.get_json()["user"]
    assert user["semester"] == 5
    assert user["skills"] == ["python", "sql"]
    assert user["cgpa"] is None

    client.put("/api/profile", json={"cgpa": 3.7, "showCgpa": True}, headers=auth("alice"))
    assert client.get("/api/profile", headers=auth("alice")).get_json()["cgpa"] == 3.7


@pytest.mark.parametrize("payload, message", [
    ({"semester": "fifth"}, "Invalid semester value"),
    ({"cgpa": "high"}, "Invalid CGPA value"),
])
def test_profile_update_rejects_bad_numbers(client, auth, users, payload, message):
    resp = client.put("/api/profile", json=payload, headers=auth("alice"))
    assert resp.status_code == 400
    assert resp.get_json() == {"error": message}


def test_search_filters(client, auth, users):
    users["bob"].major = "Computer Science"
    users["bob"].skills = ["python"]
    users["bob"].cgpa = 3.5
    users["carol"].major = "Physics"
    users["carol"].cgpa = 3.9
    users["dave"].is_profile_public = False
    db.session.commit()

    names = [u["name"] for u in client.get("/api/users/search", headers=auth("alice")).get_json()]
    assert names == ["Bob", "Carol"]

    by_major = client.get("/api/users/search?major=computer", headers=auth("alice")).get_json()
    assert [u["name"] for u in by_major] == ["Bob"]

    by_skill = client.get("/api/users/search?skills=python", headers=auth("alice")).get_json()
    assert [u["name"] for u in by_skill] == ["Bob"]

    by_cgpa = client.get("/api/users/search?minCgpa=3.8", headers=auth("alice")).get_json()
    assert [u["name"] for u in by_cgpa] == ["Carol"]
    assert by_cgpa[0]["cgpa"] is None


def test_search_reports_group_count(client, auth, group):
    [bob] = [u for u in client.get("/api/users/search", headers=auth("dave")).get_json() if u["name"] == "Bob"]
    assert bob["_count"]["studyGroups"] == 1


def _request(client, auth, sender, target):
    return client.post("/api/users/connections", json={"targetUserId": target.id}, headers=auth(sender))


def test_connection_request_and_accept(client, auth, users):
    resp = _request(client, auth, "alice", users["bob"])
    assert resp.status_code == 200
    connection = resp.get_json()["connection"]
    assert connection["status"] == "pending"

    duplicate = _request(client, auth, "bob", users["alice"])
    assert duplicate.status_code == 400
    assert duplicate.get_json() == {"error": "Connection request already exists"}

    forbidden = client.put("/api/users/connections", json={"connectionId": connection["id"], "action": "accept"},
                           headers=auth("alice"))
    assert forbidden.status_code == 403

    accepted = client.put("/api/users/connections", json={"connectionId": connection["id"], "action": "accept"},
                          headers=auth("bob"))
    assert accepted.status_code == 200
    assert accepted.get_json()["connection"]["status"] == "accepted"

    [listed] = client.get("/api/users/connections", headers=auth("alice")).get_json()
    assert listed["user"]["id"] == users["bob"].id

    again = _request(client, auth, "alice", users["bob"])
    assert again.get_json() == {"error": "Users are already connected"}


def test_connection_request_validation(client, auth, users):
    assert _request(client, auth, "alice", users["alice"]).status_code == 400
    missing = client.post("/api/users/connections", json={"targetUserId": "nobody"}, headers=auth("alice"))
    assert missing.status_code == 404
    empty = client.post("/api/users/connections", json={}, headers=auth("alice"))
    assert empty.get_json() == {"error": "Target user ID is required"}


def test_rejected_connection_can_be_requested_again(client, auth, users):
    connection = _request(client, auth, "alice", users["bob"]).get_json()["connection"]
    client.put("/api/users/connections", json={"connectionId": connection["id"], "action": "reject"},
               headers=auth("bob"))
    resp = _request(client, auth, "bob", users["alice"])
    assert resp.status_code == 200
    body = resp.get_json()["connection"]
    assert body["status"] == "pending"
    assert body["senderId"] == users["bob"].id
    assert Connection.query.count() == 1


def test_respond_requires_valid_action(client, auth, users):
    connection = _request(client, auth, "alice", users["bob"]).get_json()["connection"]
    resp = client.put("/api/users/connections", json={"connectionId": connection["id"], "action": "ignore"},
                      headers=auth("bob"))
    assert resp.status_code == 400


@pytest.mark.parametrize("canceller, other", [("alice", "bob"), ("bob", "alice")])
def test_cancel_pending_request_either_side(client, auth, users, canceller, other):
    _request(client, auth, "alice", users["bob"])
    resp = client.delete(f"/api/users/connections/{users[other].id}", headers=auth(canceller))
    assert resp.status_code == 200
    assert Connection.query.count() == 0


def test_cancel_missing_request_leaves_others(client, auth, users):
    _request(client, auth, "alice", users["bob"])
    resp = client.delete(f"/api/users/connections/{users['carol'].id}", headers=auth("alice"))
    assert resp.status_code == 404
    assert resp.get_json() == {"error": "Connection request not found"}
    assert Connection.query.count() == 1


def test_activity_counts(client, auth, users, group):
    bob = users["bob"].id
    db.session.add_all([
        CalendarEvent(title="e", start_time=datetime(2024, 1, 1), end_time=datetime(2024, 1, 1),
                      user_id=bob, group_id=group.id),
        ForumPost(title="p", content="c", user_id=bob, group_id=group.id),
        ForumPost(title="q", content="c", user_id=bob, group_id=group.id),
        Message(content="m", user_id=bob, group_id=group.id),
    ])
    db.session.commit()
    assert client.get("/api/users/events/count", headers=auth("bob")).get_json() == {"count": 1}
    assert client.get("/api/users/forum-posts/count", headers=auth("bob")).get_json() == {"count": 2}
    assert client.get("/api/users/messages/count", headers=auth("bob")).get_json() == {"count": 1}
    assert client.get("/api/users/messages/count", headers=auth("alice")).get_json() == {"count": 0}


def _discover(client, auth, query="", uid="alice"):
    resp = client.get(f"/api/users/discovery{query}", headers=auth(uid))
    assert resp.status_code == 200
    return resp.get_json()


def test_discovery_orders_online_first(client, auth, users):
    users["carol"].is_online = True
    users["bob"].last_seen = datetime(2024, 1, 2)
    users["dave"].last_seen = datetime(2024, 1, 1)
    db.session.commit()
    assert [u["name"] for u in _discover(client, auth)] == ["Carol", "Bob", "Dave"]


def test_discovery_search_and_exact_filters(client, auth, users):
    users["bob"].student_id = "21101001"
    users["bob"].department = "CSE"
    users["bob"].year = 2
    users["carol"].department = "EEE"
    users["carol"].year = 2
    db.session.commit()

    assert [u["name"] for u in _discover(client, auth, "?search=2110")] == ["Bob"]
    assert [u["name"] for u in _discover(client, auth, "?search=DAVE@EXAMPLE")] == ["Dave"]
    assert [u["name"] for u in _discover(client, auth, "?department=CSE")] == ["Bob"]
    assert sorted(u["name"] for u in _discover(client, auth, "?year=2")) == ["Bob", "Carol"]

    bad = client.get("/api/users/discovery?year=second", headers=auth("alice"))
    assert bad.status_code == 400
    assert bad.get_json() == {"error": "Invalid year value"}


def test_discovery_group_filters(client, auth, group):
    shared = _discover(client, auth, "?group=shared", uid="bob")
    assert sorted(u["name"] for u in shared) == ["Alice", "Carol"]
    assert [u["name"] for u in _discover(client, auth, "?group=none", uid="bob")] == ["Dave"]

    [alice] = [u for u in shared if u["name"] == "Alice"]
    assert alice["groups"] == [{"id": group.id, "name": group.name, "courseCode": "CSE110"}]
    assert alice["_count"]["groups"] == 1


def test_discovery_connection_status(client, auth, users):
    accepted = _request(client, auth, "bob", users["alice"]).get_json()["connection"]
    client.put("/api/users/connections", json={"connectionId": accepted["id"], "action": "accept"},
               headers=auth("alice"))
    _request(client, auth, "carol", users["alice"])
    rejected = _request(client, auth, "alice", users["dave"]).get_json()["connection"]
    client.put("/api/users/connections", json={"connectionId": rejected["id"], "action": "reject"},
               headers=auth("dave"))

    statuses = {u["name"]: u["connectionStatus"] for u in _discover(client, auth)}
    assert statuses == {"Bob": "connected", "Carol": "pending", "Dave": "none"}

    [bob] = [u for u in _discover(client, auth, "?search=bob")]
    assert bob["_count"]["connections"] == 1
