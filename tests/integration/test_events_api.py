"""
Integration tests for the event endpoints.

Events are seeded straight into SQLite so tests control dates and
creation order; everything else goes through the HTTP API.
"""

import pytest

from conftest import days_from_today, register, login, auth_headers, seed_event, seed_user

EVENTS = "/api/v1/events"


@pytest.fixture
def host_id(client, test_settings):
    return seed_user(test_settings)


class TestListing:
    def test_empty_listing_envelope(self, client):
        response = client.get(EVENTS)
        assert response.status_code == 200
        assert response.json() == {
            "success": True,
            "currentPage": 1,
            "totalPages": 0,
            "totalEvents": 0,
            "numOfEvents": 0,
            "events": [],
        }

    def test_pagination(self, client, test_settings, host_id):
        ids = [seed_event(test_settings, host_id, title=f"Event {i}") for i in range(25)]
        body = client.get(EVENTS, params={"page": 2}).json()
        assert body["currentPage"] == 2
        assert body["totalPages"] == 3
        assert body["totalEvents"] == 25
        assert body["numOfEvents"] == 10
        newest_first = list(reversed(ids))
        assert [e["id"] for e in body["events"]] == newest_first[10:20]

    def test_last_page_is_partial(self, client, test_settings, host_id):
        for i in range(25):
            seed_event(test_settings, host_id, title=f"Event {i}")
        body = client.get(EVENTS, params={"page": 3}).json()
        assert body["numOfEvents"] == 5

    @pytest.mark.parametrize("page", ["0", "-2", "abc"])
    def test_invalid_page_means_first_page(self, client, test_settings, host_id, page):
        seed_event(test_settings, host_id)
        body = client.get(EVENTS, params={"page": page}).json()
        assert body["currentPage"] == 1
        assert body["numOfEvents"] == 1

    def test_past_events_are_excluded(self, client, test_settings, host_id):
        seed_event(test_settings, host_id, title="Yesterday", day=days_from_today(-1))
        today_id = seed_event(test_settings, host_id, title="Today", day=days_from_today(0))
        body = client.get(EVENTS).json()
        assert [e["id"] for e in body["events"]] == [today_id]

    def test_event_shape(self, client, test_settings, host_id):
        seed_event(test_settings, host_id, title="Jazz Night", tags=["jazz", "live"])
        event = client.get(EVENTS).json()["events"][0]
        assert event["title"] == "Jazz Night"
        assert event["tags"] == ["jazz", "live"]
        assert event["hostedBy"] == {"id": host_id, "fullName": "Host Person"}
        assert event["price"] == {"free": False, "regular": 10.0, "vip": 25.0}
        assert {"startTime", "endTime", "createdAt", "image"} <= set(event)

    def test_price_filter(self, client, test_settings, host_id):
        free_id = seed_event(test_settings, host_id, free=True)
        paid_id = seed_event(test_settings, host_id, free=False)
        assert [e["id"] for e in client.get(EVENTS, params={"price": "free"}).json()["events"]] == [free_id]
        assert [e["id"] for e in client.get(EVENTS, params={"price": "paid"}).json()["events"]] == [paid_id]

    def test_tag_filter_matches_any(self, client, test_settings, host_id):
        music = seed_event(test_settings, host_id, tags=["music"])
        art = seed_event(test_settings, host_id, tags=["art", "design"])
        seed_event(test_settings, host_id, tags=["sports"])
        body = client.get(EVENTS, params={"tag": "music, art"}).json()
        assert {e["id"] for e in body["events"]} == {music, art}

    def test_blank_tag_list_matches_nothing(self, client, test_settings, host_id):
        seed_event(test_settings, host_id)
        assert client.get(EVENTS, params={"tag": " , "}).json()["totalEvents"] == 0

    def test_search_term_is_case_insensitive(self, client, test_settings, host_id):
        by_title = seed_event(test_settings, host_id, title="Summer JAZZ Fest")
        by_category = seed_event(test_settings, host_id, title="Gig", category="jazz")
        seed_event(test_settings, host_id, title="Chess club", category="games")
        body = client.get(EVENTS, params={"searchTerm": "jazz"}).json()
        assert {e["id"] for e in body["events"]} == {by_title, by_category}

    def test_filters_combine(self, client, test_settings, host_id):
        wanted = seed_event(test_settings, host_id, location="Abuja", category="music", free=True)
        seed_event(test_settings, host_id, location="Abuja", category="music", free=False)
        seed_event(test_settings, host_id, location="Lagos", category="music", free=True)
        body = client.get(
            EVENTS, params={"location": "abu", "category": "MUS", "price": "free"}
        ).json()
        assert [e["id"] for e in body["events"]] == [wanted]

    def test_like_wildcards_are_literal(self, client, test_settings, host_id):
        seed_event(test_settings, host_id, title="Anything")
        assert client.get(EVENTS, params={"searchTerm": "%"}).json()["totalEvents"] == 0


class TestFeeds:
    def test_upcoming_is_capped_and_sorted_by_date(self, client, test_settings, host_id):
        for offset in (9, 3, 1, 8, 2, 7, 5, 4):
            seed_event(test_settings, host_id, day=days_from_today(offset))
        seed_event(test_settings, host_id, day=days_from_today(-3))
        body = client.get(f"{EVENTS}/upcoming").json()
        assert body["success"] is True
        dates = [e["date"] for e in body["events"]]
        assert len(dates) == 6
        assert dates == sorted(dates)
        assert dates[0] == days_from_today(1).isoformat()

    def test_free_feed_only_has_free_events(self, client, test_settings, host_id):
        free_id = seed_event(test_settings, host_id, free=True)
        seed_event(test_settings, host_id, free=False)
        seed_event(test_settings, host_id, free=True, day=days_from_today(-1))
        body = client.get(f"{EVENTS}/free").json()
        assert [e["id"] for e in body["events"]] == [free_id]


class TestSingleEvent:
    def test_event_with_similar_events(self, client, test_settings, host_id):
        target = seed_event(test_settings, host_id, category="music")
        similar = [seed_event(test_settings, host_id, category="music") for _ in range(4)]
        seed_event(test_settings, host_id, category="music", day=days_from_today(-2))
        seed_event(test_settings, host_id, category="art")
        body = client.get(f"{EVENTS}/{target}").json()
        assert body["event"]["id"] == target
        assert [e["id"] for e in body["similarEvents"]] == list(reversed(similar))[:3]

    def test_past_event_can_still_be_fetched(self, client, test_settings, host_id):
        past = seed_event(test_settings, host_id, day=days_from_today(-10))
        assert client.get(f"{EVENTS}/{past}").status_code == 200

    def test_unknown_event(self, client):
        response = client.get(f"{EVENTS}/999")
        assert response.status_code == 404
        assert response.json() == {"success": False, "message": "Event not found"}


def event_form(**overrides):
    data = {
        "title": "Jazz Night",
        "date": days_from_today(10).isoformat(),
        "startTime": "19:00",
        "endTime": "23:00",
        "location": "Lagos",
        "category": "music",
        "description": "Live jazz",
        "tags": "jazz,live",
        "free": "false",
        "regularPrice": "20",
        "vipPrice": "50",
    }
    data.update(overrides)
    return data


IMAGE = {"image": ("poster.png", b"\x89PNG fake", "image/png")}


class TestCreateEvent:
    def test_requires_authentication(self, client):
        response = client.post(EVENTS, data=event_form(), files=IMAGE)
        assert response.status_code == 401
        assert response.json()["success"] is False

    def test_create_paid_event(self, client, user, fake_media):
        response = client.post(EVENTS, data=event_form(), files=IMAGE, headers=user["headers"])
        assert response.status_code == 201, response.text
        body = response.json()
        assert body["message"] == "Event created successfully"
        event = body["event"]
        assert event["image"] == "https://media.test/poster.png"
        assert event["tags"] == ["jazz", "live"]
        assert event["hostedBy"] == {"id": user["id"], "fullName": user["fullName"]}
        assert fake_media.uploads == ["poster.png"]

    def test_online_free_event(self, client, user):
        form = event_form(online="true", location="", free="true", regularPrice="", vipPrice="")
        body = client.post(EVENTS, data=form, files=IMAGE, headers=user["headers"]).json()
        assert body["event"]["location"] == "online"
        assert body["event"]["price"]["free"] is True

    def test_missing_field(self, client, user):
        response = client.post(EVENTS, data=event_form(title=""), files=IMAGE, headers=user["headers"])
        assert response.status_code == 400
        assert response.json()["message"] == "All fields are required"

    def test_missing_image(self, client, user, fake_media):
        response = client.post(EVENTS, data=event_form(), headers=user["headers"])
        assert response.status_code == 400
        assert fake_media.uploads == []

    def test_upload_failure(self, client, user, fake_media):
        fake_media.fail = True
        response = client.post(EVENTS, data=event_form(), files=IMAGE, headers=user["headers"])
        assert response.status_code == 502
        assert client.get(EVENTS).json()["totalEvents"] == 0


class TestCallerEvents:
    def test_hosted_events(self, client, test_settings, user, host_id):
        mine = [seed_event(test_settings, user["id"]) for _ in range(4)]
        seed_event(test_settings, host_id)
        body = client.get(f"{EVENTS}/hosted", headers=user["headers"]).json()
        assert body["totalEvents"] == 4
        assert body["totalPages"] == 2
        assert [e["id"] for e in body["events"]] == list(reversed(mine))[:3]

    def test_hosted_requires_authentication(self, client):
        assert client.get(f"{EVENTS}/hosted").status_code == 401

    def test_pay_then_previous_and_attending(self, client, test_settings, user, host_id):
        past = seed_event(test_settings, host_id, day=days_from_today(-5))
        older = seed_event(test_settings, host_id, day=days_from_today(-20))
        soon = seed_event(test_settings, host_id, day=days_from_today(2))
        later = seed_event(test_settings, host_id, day=days_from_today(30))

        for event_id in (later, past, older, soon):
            response = client.post(f"{EVENTS}/pay/{event_id}", headers=user["headers"])
            assert response.status_code == 200, response.text
        assert response.json()["yourEvents"] == [later, past, older, soon]

        previous = client.get(f"{EVENTS}/previous", headers=user["headers"]).json()
        assert previous["message"] == "Previous events retrieved successfully"
        assert [e["id"] for e in previous["events"]] == [past, older]

        attending = client.get(f"{EVENTS}/attending", headers=user["headers"]).json()
        assert attending["message"] == "Upcoming events retrieved successfully"
        assert [e["id"] for e in attending["events"]] == [soon, later]

    def test_paying_twice_is_a_conflict(self, client, test_settings, user, host_id):
        event_id = seed_event(test_settings, host_id)
        first = client.post(f"{EVENTS}/pay/{event_id}", headers=user["headers"])
        assert first.status_code == 200
        assert first.json()["yourEvents"] == [event_id]
        response = client.post(f"{EVENTS}/pay/{event_id}", headers=user["headers"])
        assert response.status_code == 409
        assert response.json()["message"] == "Event already added to your events"
        attending = client.get(f"{EVENTS}/attending", headers=user["headers"]).json()
        assert attending["totalEvents"] == 1

    def test_pay_for_unknown_event(self, client, user):
        assert client.post(f"{EVENTS}/pay/4242", headers=user["headers"]).status_code == 404

    def test_lists_are_per_user(self, client, test_settings, user, host_id):
        event_id = seed_event(test_settings, host_id)
        client.post(f"{EVENTS}/pay/{event_id}", headers=user["headers"])
        register(client, email="other@example.com")
        other = auth_headers(login(client, email="other@example.com"))
        assert client.get(f"{EVENTS}/attending", headers=other).json()["totalEvents"] == 0


class TestAuthGate:
    def test_bad_scheme(self, client, user):
        headers = {"Authorization": f"Token {user['token']}"}
        assert client.get(f"{EVENTS}/hosted", headers=headers).status_code == 401

    def test_garbage_token(self, client):
        response = client.get(f"{EVENTS}/hosted", headers=auth_headers("garbage"))
        assert response.status_code == 401
        assert response.json() == {"success": False, "message": "Invalid token"}


HUGE = "99999999999999999999"


class TestOversizedNumbers:
    """Values beyond SQLite's integer range behave like any other miss."""

    def test_page_past_the_end_of_the_listing(self, client, test_settings, host_id):
        seed_event(test_settings, host_id)
        response = client.get(EVENTS, params={"page": HUGE})
        assert response.status_code == 200
        body = response.json()
        assert body["currentPage"] == int(HUGE)
        assert body["totalEvents"] == 1
        assert body["totalPages"] == 1
        assert body["numOfEvents"] == 0
        assert body["events"] == []

    def test_page_past_the_end_of_hosted_events(self, client, test_settings, user):
        seed_event(test_settings, user["id"])
        response = client.get(f"{EVENTS}/hosted", params={"page": "9999999999999999999"}, headers=user["headers"])
        assert response.status_code == 200
        assert response.json()["events"] == []

    def test_unknown_huge_event_id(self, client):
        response = client.get(f"{EVENTS}/{HUGE}")
        assert response.status_code == 404
        assert response.json() == {"success": False, "message": "Event not found"}

    def test_pay_for_huge_event_id(self, client, user):
        response = client.post(f"{EVENTS}/pay/{HUGE}", headers=user["headers"])
        assert response.status_code == 404
        assert response.json()["message"] == "Event not found"
