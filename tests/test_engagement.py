from sqlalchemy import update

from conftest import make_trip_payload, shadow_headers, user_headers
from models.Trip import Trip
from models.TripLike import TripLike
from services import clone_service, like_service, visibility_service

ALICE = user_headers("alice")
BOB = user_headers("bob")
CAROL = user_headers("carol")


def _visibility(client, trip_id, value, headers=ALICE):
    return client.post(f"/public-trips/{trip_id}/visibility", json={"visibility": value}, headers=headers)


# ---------- Visibility ----------

def test_publish_unpublish_republish_keeps_first_published_at(client, create_trip):
    trip = create_trip(ALICE)

    first = _visibility(client, trip["id"], "public").json()
    assert first["visibility"] == "public"
    assert first["published_at"] is not None

    hidden = _visibility(client, trip["id"], "private").json()
    assert hidden["visibility"] == "private"
    assert hidden["published_at"] == first["published_at"]
    assert hidden["slug"] == first["slug"]

    again = _visibility(client, trip["id"], "public").json()
    assert again["published_at"] == first["published_at"]
    assert again["slug"] == first["slug"]


def test_invalid_visibility_is_rejected(client, create_trip):
    trip = create_trip(ALICE)
    response = _visibility(client, trip["id"], "friends-only")
    assert response.status_code == 400
    assert response.json()["code"] == "VALIDATION_ERROR"


def test_only_owner_changes_visibility(client, create_trip):
    trip = create_trip(ALICE)
    assert _visibility(client, trip["id"], "public", headers=BOB).status_code == 404


def test_shadow_trips_cannot_be_published(client, create_trip):
    trip = create_trip(shadow_headers("shadow-1"))
    response = _visibility(client, trip["id"], "public", headers=shadow_headers("shadow-1"))
    assert response.status_code == 400
    assert _visibility(client, trip["id"], "unlisted", headers=shadow_headers("shadow-1")).status_code == 200


def test_same_name_trips_get_distinct_slugs(client, publish):
    # ids share their first eight characters
    for trip_id in ("tokyo2025a", "tokyo2025b"):
        response = client.put(f"/trips/{trip_id}", json=make_trip_payload(name="Trip"), headers=ALICE)
        assert response.status_code == 200

    first = publish("tokyo2025a", ALICE)
    second = publish("tokyo2025b", ALICE)
    assert first["slug"].startswith("trip-")
    assert second["slug"].startswith("trip-")
    assert first["slug"] != second["slug"]


def test_slug_collision_is_retried_with_a_fresh_suffix(client, create_trip, publish, monkeypatch):
    taken = publish(create_trip(ALICE)["id"], ALICE)["slug"]
    trip = create_trip(ALICE)

    slugs = iter([taken, "tokyo-week-fresh001"])
    monkeypatch.setattr(visibility_service, "build_slug", lambda _trip: next(slugs))

    published = publish(trip["id"], ALICE)
    assert published["slug"] == "tokyo-week-fresh001"
    assert published["published_at"] is not None


def test_publish_gives_up_when_every_slug_is_taken(client, create_trip, publish, monkeypatch):
    taken = publish(create_trip(ALICE)["id"], ALICE)["slug"]
    trip = create_trip(ALICE)
    monkeypatch.setattr(visibility_service, "build_slug", lambda _trip: taken)

    response = _visibility(client, trip["id"], "public")
    assert response.status_code == 400
    assert response.json()["code"] == "VALIDATION_ERROR"
    assert client.get(f"/trips/{trip['id']}", headers=ALICE).json()["visibility"] == "private"


# ---------- Likes ----------

def test_double_toggle_restores_state(client, create_trip, publish, db_session):
    trip = create_trip(ALICE)
    publish(trip["id"], ALICE)

    liked = client.post(f"/public-trips/{trip['id']}/like", headers=BOB).json()
    assert liked == {"liked": True, "likes": 1}

    unliked = client.post(f"/public-trips/{trip['id']}/like", headers=BOB).json()
    assert unliked == {"liked": False, "likes": 0}
    assert db_session.query(TripLike).count() == 0


def test_likes_from_several_users_add_up(client, create_trip, publish):
    trip = create_trip(ALICE)
    publish(trip["id"], ALICE)
    client.post(f"/public-trips/{trip['id']}/like", headers=BOB)
    response = client.post(f"/public-trips/{trip['id']}/like", headers=CAROL)
    assert response.json() == {"liked": True, "likes": 2}


def test_like_counter_never_goes_negative(client, create_trip, publish, db_session):
    trip = create_trip(ALICE)
    publish(trip["id"], ALICE)
    client.post(f"/public-trips/{trip['id']}/like", headers=BOB)

    # counter drifted below the number of like rows
    db_session.execute(update(Trip).where(Trip.id == trip["id"]).values(likes=0))
    db_session.commit()

    response = client.post(f"/public-trips/{trip['id']}/like", headers=BOB)
    assert response.json() == {"liked": False, "likes": 0}


def test_private_trips_cannot_be_liked(client, create_trip):
    trip = create_trip(ALICE)
    assert client.post(f"/public-trips/{trip['id']}/like", headers=BOB).status_code == 404


def test_liking_requires_an_account(client, create_trip, publish):
    trip = create_trip(ALICE)
    publish(trip["id"], ALICE)
    response = client.post(f"/public-trips/{trip['id']}/like", headers=shadow_headers("shadow-1"))
    assert response.status_code == 401


def test_toggle_like_service_returns_state_and_total(client, create_trip, publish, db_session):
    trip = create_trip(ALICE)
    publish(trip["id"], ALICE)
    client.get("/auth/me", headers=BOB)  # creates the user row

    assert like_service.toggle_like(db_session, "bob", trip["id"]) == (True, 1)
    assert like_service.toggle_like(db_session, "bob", trip["id"]) == (False, 0)


def test_racing_like_keeps_a_single_row(client, create_trip, publish, db_session, monkeypatch):
    trip = create_trip(ALICE)
    publish(trip["id"], ALICE)
    client.get("/auth/me", headers=BOB)

    real_generate_id = like_service.generate_id
    raced = []

    def generate_id_after_other_request(prefix):
        # another request commits the same like between the existence check and the insert
        if not raced:
            raced.append(prefix)
            db_session.add(TripLike(id="like-other-request", user_id="bob", trip_id=trip["id"]))
            db_session.execute(update(Trip).where(Trip.id == trip["id"]).values(likes=Trip.likes + 1))
            db_session.commit()
        return real_generate_id(prefix)

    monkeypatch.setattr(like_service, "generate_id", generate_id_after_other_request)

    assert like_service.toggle_like(db_session, "bob", trip["id"]) == (True, 1)
    assert raced == ["like"]
    rows = db_session.query(TripLike).filter(TripLike.trip_id == trip["id"]).all()
    assert [row.id for row in rows] == ["like-other-request"]
    assert db_session.get(Trip, trip["id"]).likes == 1


def test_like_can_be_removed_after_unpublish(client, create_trip, publish, db_session):
    trip = create_trip(ALICE)
    publish(trip["id"], ALICE)
    client.post(f"/public-trips/{trip['id']}/like", headers=BOB)
    _visibility(client, trip["id"], "private")

    response = client.post(f"/public-trips/{trip['id']}/like", headers=BOB)
    assert response.status_code == 200
    assert response.json() == {"liked": False, "likes": 0}
    assert db_session.query(TripLike).count() == 0

    # adding a like back still needs a public trip
    assert client.post(f"/public-trips/{trip['id']}/like", headers=BOB).status_code == 404


# ---------- Clone ----------

def test_clone_is_an_independent_private_copy(client, create_trip, publish, db_session):
    source = create_trip(ALICE)
    publish(source["id"], ALICE)

    response = client.post(f"/trips/clone/{source['id']}", json={"name": "My Tokyo"}, headers=BOB)
    assert response.status_code == 201, response.text
    clone = response.json()

    assert clone["id"] != source["id"]
    assert clone["name"] == "My Tokyo"
    assert clone["user_id"] == "bob"
    assert clone["visibility"] == "private"
    assert clone["status"] == "planning"
    assert clone["likes"] == 0
    assert clone["clone_count"] == 0
    assert clone["slug"] is None
    assert clone["published_at"] is None
    assert clone["start_date"] == source["start_date"]
    assert clone["traveler_type"] == source["traveler_type"]
    assert [d["city"] for d in clone["destinations"]] == ["Tokyo", "Kyoto"]

    source_ids = {d["id"] for d in source["destinations"]} | {dp["id"] for dp in source["day_plans"]}
    source_ids |= {a["id"] for dp in source["day_plans"] for a in dp["activities"]}
    clone_ids = {d["id"] for d in clone["destinations"]} | {dp["id"] for dp in clone["day_plans"]}
    clone_ids |= {a["id"] for dp in clone["day_plans"] for a in dp["activities"]}
    assert source_ids.isdisjoint(clone_ids)

    # day-plan links point at the clone's own destinations
    clone_destinations = {d["id"] for d in clone["destinations"]}
    for dp in clone["day_plans"]:
        for link in dp["destinations"]:
            assert link["destination_id"] in clone_destinations

    refreshed = db_session.get(Trip, source["id"])
    assert refreshed.clone_count == 1


def test_editing_clone_leaves_source_alone(client, create_trip, publish):
    source = create_trip(ALICE)
    publish(source["id"], ALICE)
    clone = client.post(f"/trips/clone/{source['id']}", json={"name": "Mine"}, headers=BOB).json()

    client.delete(f"/trips/{clone['id']}", headers=BOB)
    detail = client.get(f"/public-trips/{source['id']}").json()
    assert len(detail["destinations"]) == 2
    assert len(detail["day_plans"]) == 2


def test_clone_requires_public_source(client, create_trip):
    trip = create_trip(ALICE)
    response = client.post(f"/trips/clone/{trip['id']}", json={"name": "Copy"}, headers=BOB)
    assert response.status_code == 404


def test_clone_requires_a_name(client, create_trip, publish):
    trip = create_trip(ALICE)
    publish(trip["id"], ALICE)
    response = client.post(f"/trips/clone/{trip['id']}", json={"name": "  "}, headers=BOB)
    assert response.status_code == 400


def test_clone_succeeds_when_counter_update_fails(client, create_trip, publish, db_session, monkeypatch):
    source = create_trip(ALICE)
    publish(source["id"], ALICE)

    def broken_update(*args, **kwargs):
        raise RuntimeError("database unavailable")

    monkeypatch.setattr(clone_service, "update", broken_update)
    response = client.post(f"/trips/clone/{source['id']}", json={"name": "Copy"}, headers=BOB)
    monkeypatch.undo()

    assert response.status_code == 201
    assert db_session.get(Trip, source["id"]).clone_count == 0


def test_increment_clone_count_adds_one(create_trip, db_session):
    source = create_trip(ALICE)
    clone_service.increment_clone_count(source["id"])
    clone_service.increment_clone_count(source["id"])
    assert db_session.get(Trip, source["id"]).clone_count == 2
