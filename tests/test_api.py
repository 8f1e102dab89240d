import csv
from io import StringIO
from urllib.parse import quote

from fastapi.testclient import TestClient

from app import config
from app.database import is_in_memory
from app.main import create_app
from app.schemas import HEADERS

SHOREDITCH = "2B N1 A - 29 Shoreditch Heights"

client = None


def setup_function(function):
    # Fresh app per test: moderation state must not leak between tests.
    global client
    client = TestClient(create_app())


def parse_csv(text):
    sio = StringIO(text)
    reader = csv.DictReader(sio)
    return list(reader)


def reviews_by_id():
    return {r["id"]: r for r in client.get("/reviews").json()["data"]}


def test_health():
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json()["status"] == "ok"


def test_list_reviews_envelope():
    r = client.get("/reviews")
    assert r.status_code == 200
    body = r.json()
    assert body["status"] == "success"
    assert body["count"] == 7 == len(body["data"])
    assert [x["id"] for x in body["data"]] == [7453, 7454, 7455, 7456, 7457, 7458, 7459]


def test_list_reviews_field_names_and_timestamp_text():
    review = reviews_by_id()[7453]
    assert set(review) == {
        "id", "type", "status", "overallRating", "comment", "categories", "submittedAt",
        "guestName", "listingName", "channel", "approved", "featured",
    }
    assert review["submittedAt"] == "2020-08-21 22:45:14"
    assert review["type"] == "host-to-guest"
    assert review["channel"] == "airbnb"


def test_default_flags_are_false():
    for review in client.get("/reviews").json()["data"]:
        assert review["approved"] is False
        assert review["featured"] is False


def test_overall_rating_from_categories():
    reviews = reviews_by_id()
    assert reviews[7453]["overallRating"] == 10
    assert reviews[7454]["overallRating"] == 10  # 9.75
    assert reviews[7456]["overallRating"] == 7  # 6.75
    assert reviews[7458]["overallRating"] == 4  # 3.5 rounds up
    assert reviews[7453]["categories"] == {
        "cleanliness": 10, "communication": 10, "location": 10, "respect_house_rules": 10,
    }


def test_featured_scenario_7453():
    r = client.patch("/reviews", json={"id": 7453, "featured": True})
    assert r.status_code == 200
    assert r.json() == {
        "status": "success",
        "message": "Review updated successfully",
        "data": {"id": 7453, "approved": False, "featured": True},
    }
    review = reviews_by_id()[7453]
    assert review["featured"] is True
    assert review["approved"] is False
    assert review["overallRating"] == 10


def test_update_is_reflected_only_for_that_review():
    client.patch("/reviews", json={"id": 7455, "approved": True})
    reviews = reviews_by_id()
    assert reviews[7455]["approved"] is True
    assert all(not r["featured"] for r in reviews.values())
    assert [i for i, r in reviews.items() if r["approved"]] == [7455]


def test_update_is_idempotent():
    first = client.patch("/reviews", json={"id": 7454, "approved": True}).json()
    second = client.patch("/reviews", json={"id": 7454, "approved": True}).json()
    assert first == second
    assert reviews_by_id()[7454]["approved"] is True


def test_partial_patch_keeps_other_flag():
    client.patch("/reviews", json={"id": 7456, "approved": True})
    r = client.patch("/reviews", json={"id": 7456, "featured": True})
    assert r.json()["data"] == {"id": 7456, "approved": True, "featured": True}
    r = client.patch("/reviews", json={"id": 7456, "approved": False})
    assert r.json()["data"] == {"id": 7456, "approved": False, "featured": True}


def test_null_flag_is_ignored():
    client.patch("/reviews", json={"id": 7457, "approved": True})
    r = client.patch("/reviews", json={"id": 7457, "approved": None, "featured": True})
    assert r.json()["data"] == {"id": 7457, "approved": True, "featured": True}


def test_unknown_review_is_404_and_not_stored():
    r = client.patch("/reviews", json={"id": 999999, "approved": True})
    assert r.status_code == 404
    assert r.json()["status"] == "error"
    store = client.app.state.moderation_store
    assert not store.has_entry(999999)
    assert len(store) == 0


def test_invalid_ids_are_400():
    for body in ({"approved": True}, {"id": "7453"}, {"id": None}, {"id": True}, {"id": 7453.5}):
        r = client.patch("/reviews", json=body)
        assert r.status_code == 400, body
        assert r.json()["status"] == "error"


def test_invalid_bodies_are_400():
    assert client.patch("/reviews", json=[7453]).status_code == 400
    assert client.patch("/reviews", json={"id": 7453, "approved": "yes"}).status_code == 400
    r = client.patch("/reviews", content=b"{not json", headers={"Content-Type": "application/json"})
    assert r.status_code == 400
    assert r.json()["status"] == "error"


def test_other_methods_are_405_with_allow_header():
    for method in ("POST", "PUT", "DELETE"):
        r = client.request(method, "/reviews", json={"id": 7453})
        assert r.status_code == 405, method
        assert r.headers["allow"] == "GET, PATCH"
        assert r.json()["status"] == "error"


def test_methods_without_a_route_still_advertise_get_and_patch():
    r = client.head("/reviews")
    assert r.status_code == 405
    assert r.headers["allow"] == "GET, PATCH"
    for method in ("TRACE", "FOO"):
        r = client.request(method, "/reviews")
        assert r.status_code == 405, method
        assert r.headers["allow"] == "GET, PATCH"
        assert r.json()["status"] == "error"


def test_unexpected_failure_is_generic_500():
    def boom():
        raise RuntimeError("database exploded")

    client.app.state.review_service.list_reviews = boom
    r = client.get("/reviews")
    assert r.status_code == 500
    assert r.json() == {"status": "error", "message": "Failed to fetch reviews"}
    assert "exploded" not in r.text


def test_failure_building_the_response_is_json_500():
    app = create_app()
    app.state.review_service.list_reviews = lambda: [object()]
    r = TestClient(app, raise_server_exceptions=False).get("/reviews")
    assert r.status_code == 500
    assert r.headers["content-type"].startswith("application/json")
    assert r.json() == {"status": "error", "message": "Internal server error"}


def test_apps_do_not_share_moderation_state():
    assert is_in_memory(config.DATABASE_URL)
    client.patch("/reviews", json={"id": 7453, "approved": True})
    other = TestClient(create_app())
    assert other.get("/reviews/7453").json()["data"]["approved"] is False
    assert client.get("/reviews/7453").json()["data"]["approved"] is True


def test_get_single_review():
    r = client.get("/reviews/7459")
    assert r.status_code == 200
    assert r.json()["data"]["guestName"] == "Michael Thompson"
    assert client.get("/reviews/1").status_code == 404
    assert client.get("/reviews/abc").status_code == 400


def test_filter_by_channel_sorted_newest_first():
    r = client.get("/reviews?channel=vrbo")
    assert [x["id"] for x in r.json()["data"]] == [7458, 7457]


def test_filter_min_rating_and_sort_by_rating():
    r = client.get("/reviews?min_rating=9&sort=rating")
    data = r.json()["data"]
    assert {x["id"] for x in data} == {7453, 7454, 7455, 7457}
    assert [x["overallRating"] for x in data] == sorted((x["overallRating"] for x in data), reverse=True)
    assert r.json()["count"] == 4


def test_search_is_case_insensitive():
    r = client.get("/reviews?search=WIFI")
    assert [x["id"] for x in r.json()["data"]] == [7455]
    r = client.get("/reviews?search=camden")
    assert {x["id"] for x in r.json()["data"]} == {7455, 7456}


def test_filter_by_flags():
    client.patch("/reviews", json={"id": 7454, "approved": True})
    r = client.get("/reviews?approved=true")
    assert [x["id"] for x in r.json()["data"]] == [7454]


def test_invalid_query_params_are_400():
    assert client.get("/reviews?min_rating=11").status_code == 400
    assert client.get("/reviews?sort=guest").status_code == 400


def test_stats():
    client.patch("/reviews", json={"id": 7453, "approved": True, "featured": True})
    client.patch("/reviews", json={"id": 7454, "approved": True})
    stats = client.get("/reviews/stats").json()["data"]
    assert stats["total"] == 7
    assert stats["approved"] == 2
    assert stats["featured"] == 1
    # 10 + 10 + 9 + 7 + 10 + 4 + 5
    assert abs(stats["averageRating"] - 55 / 7) < 1e-9


def test_export_masks_guest_names_by_default():
    r = client.get("/reviews/export")
    assert r.status_code == 200
    assert r.headers["content-type"].startswith("text/csv")
    assert "reviews.csv" in r.headers["content-disposition"]
    header = r.text.splitlines()[0].split(",")
    assert header[:len(HEADERS["reviews"])] == HEADERS["reviews"]
    assert "cat_cleanliness" in header
    rows = parse_csv(r.text)
    assert len(rows) == 7
    assert "Shane Finkelstein" not in r.text
    assert rows[0]["guestName"] == "S*** F***"
    assert rows[0]["cat_location"] == "10"


def test_export_unmasked():
    r = client.get("/reviews/export?mask_pii=false&channel=airbnb")
    rows = parse_csv(r.text)
    assert {row["guestName"] for row in rows} == {"Shane Finkelstein", "Michael Chen", "Sarah Johnson"}


def test_listings():
    r = client.get("/listings")
    assert r.json()["data"] == [
        SHOREDITCH,
        "1B S2 B - 15 Camden Lock Studio",
        "3B W1 C - 42 Covent Garden Luxury",
    ]


def test_showcase_only_shows_approved_reviews():
    client.patch("/reviews", json={"id": 7454, "approved": True})
    client.patch("/reviews", json={"id": 7458, "approved": True, "featured": True})
    client.patch("/reviews", json={"id": 7453, "featured": True})  # featured but not approved

    r = client.get(f"/listings/{quote(SHOREDITCH)}/showcase")
    assert r.status_code == 200
    data = r.json()["data"]
    assert data["totalReviews"] == 4
    assert [x["id"] for x in data["approvedReviews"]] == [7454, 7458]
    assert [x["id"] for x in data["featuredReviews"]] == [7458]
    assert data["approvalRate"] == 50
    assert data["averageRating"] == 7.0
    assert data["categoryAverages"]["cleanliness"] == 5.0


def test_showcase_without_approved_reviews():
    data = client.get(f"/listings/{quote('3B W1 C - 42 Covent Garden Luxury')}/showcase").json()["data"]
    assert data["approvedReviews"] == []
    assert data["averageRating"] == 0.0
    assert data["categoryAverages"] == {}
    assert data["approvalRate"] == 0


def test_showcase_unknown_listing():
    r = client.get("/listings/nowhere/showcase")
    assert r.status_code == 404
    assert r.json()["status"] == "error"
