import pytest

from models import Notification


def test_list_newest_first_with_default_limit(client, auth, users, make_notification):
    for i in range(25):
        make_notification(users["alice"], title=f"n{i}", minutes=i)
    make_notification(users["bob"], title="not mine")

    resp = client.get("/api/notifications", headers=auth("alice"))
    assert resp.status_code == 200
    titles = [n["title"] for n in resp.get_json()]
    assert len(titles) == 20
    assert titles[0] == "n24"
    assert "not mine" not in titles


def test_list_unread_only_and_limit(client, auth, users, make_notification):
    make_notification(users["alice"], title="read", minutes=1, is_read=True)
    make_notification(users["alice"], title="unread", minutes=2)
    make_notification(users["alice"], title="older unread", minutes=0)

    unread = client.get("/api/notifications?unreadOnly=true", headers=auth("alice")).get_json()
    assert [n["title"] for n in unread] == ["unread", "older unread"]

    limited = client.get("/api/notifications?limit=1", headers=auth("alice")).get_json()
    assert [n["title"] for n in limited] == ["unread"]


def test_limit_is_capped(client, auth, users, make_notification):
    for i in range(105):
        make_notification(users["alice"], minutes=i)
    resp = client.get("/api/notifications?limit=500", headers=auth("alice"))
    assert len(resp.get_json()) == 100


@pytest.mark.parametrize("limit", ["abc", "0", "-3"])
def test_invalid_limit(client, auth, users, limit):
    resp = client.get(f"/api/notifications?limit={limit}", headers=auth("alice"))
    assert resp.status_code == 400


def test_mark_read_only_touches_own_rows(client, auth, users, make_notification, reload):
    mine = make_notification(users["alice"])
    theirs = make_notification(users["bob"])

    resp = client.patch("/api/notifications", json={
        "notificationIds": [mine.id, theirs.id],
        "markAsRead": True,
    }, headers=auth("alice"))
    assert resp.status_code == 200
    assert resp.get_json() == {"message": "Notifications updated successfully", "updated": 1}
    assert reload(Notification, mine.id).is_read is True
    assert reload(Notification, theirs.id).is_read is False


def test_mark_unread(client, auth, users, make_notification, reload):
    n = make_notification(users["alice"], is_read=True)
    client.patch("/api/notifications", json={"notificationIds": [n.id], "markAsRead": False},
                 headers=auth("alice"))
    assert reload(Notification, n.id).is_read is False


@pytest.mark.parametrize("value", ["true", 1, None])
def test_mark_read_requires_boolean(client, auth, users, make_notification, reload, value):
    n = make_notification(users["alice"])
    resp = client.patch("/api/notifications", json={"notificationIds": [n.id], "markAsRead": value},
                        headers=auth("alice"))
    assert resp.status_code == 400
    assert resp.get_json() == {"error": "markAsRead must be a boolean"}
    assert reload(Notification, n.id).is_read is False


@pytest.mark.parametrize("ids", [None, "abc", [1, 2]])
def test_mark_read_requires_id_list(client, auth, users, ids):
    resp = client.patch("/api/notifications", json={"notificationIds": ids, "markAsRead": True},
                        headers=auth("alice"))
    assert resp.status_code == 400
    assert resp.get_json() == {"error": "Notification IDs are required"}
