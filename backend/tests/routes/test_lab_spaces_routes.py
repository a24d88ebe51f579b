from fastapi.testclient import TestClient

from tests.helpers.lab_time import as_user, span

BASE = "/api/v1/lab-spaces"


class TestLabSpaceCatalog:
    def test_lists_active_spaces(
        self, client: TestClient, lab_space, other_space, make_space, user_a
    ) -> None:
        make_space("retired-greenhouse", type="greenhouse", is_active=False)

        response = client.get(BASE, headers=as_user(user_a))

        assert response.status_code == 200
        slugs = {space["slug"] for space in response.json()["data"]}
        assert slugs == {lab_space.slug, other_space.slug}

    def test_filter_by_type_and_search(
        self, client: TestClient, lab_space, other_space, user_a
    ) -> None:
        by_type = client.get(BASE, params={"type": "dry_lab"}, headers=as_user(user_a))
        by_search = client.get(BASE, params={"search": "nairobi"}, headers=as_user(user_a))

        assert [s["slug"] for s in by_type.json()["data"]] == [other_space.slug]
        assert [s["slug"] for s in by_search.json()["data"]] == [lab_space.slug]

    def test_space_detail(self, client: TestClient, lab_space, user_a) -> None:
        response = client.get(f"{BASE}/{lab_space.slug}", headers=as_user(user_a))

        data = response.json()["data"]
        assert data["type_name"] == "Wet Lab"
        assert data["amenities"] == ["fume hood", "centrifuge"]
        assert data["safety_requirements"] == ["lab coat"]

    def test_unknown_slug(self, client: TestClient, user_a) -> None:
        response = client.get(f"{BASE}/atlantis", headers=as_user(user_a))

        assert response.status_code == 404
        assert response.json()["success"] is False

    def test_catalog_requires_identity(self, client: TestClient, lab_space) -> None:
        assert client.get(BASE).status_code == 401


class TestAvailabilityRoute:
    def test_feed_merges_bookings_and_maintenance(
        self, client: TestClient, lab_space, user_a, add_booking, add_maintenance
    ) -> None:
        add_booking(lab_space, user_a, span(12, 9, 12), title="Western blot")
        add_booking(lab_space, user_a, span(12, 15, 16), status="cancelled")
        add_maintenance(lab_space, span(12, 12, 14), reason="Autoclave service")

        response = client.get(
            f"{BASE}/{lab_space.slug}/availability",
            params={"start": "2026-03-12T00:00:00Z", "end": "2026-03-13T00:00:00Z"},
            headers=as_user(user_a),
        )

        assert response.status_code == 200
        data = response.json()["data"]
        assert data["space"]["slug"] == lab_space.slug
        events = data["events"]
        assert [e["type"] for e in events] == ["booking", "maintenance"]
        assert events[0]["title"] == "Western blot"
        assert events[0]["user"] == "alice"
        assert events[1]["reason"] == "Autoclave service"

    def test_naive_window_is_422(self, client: TestClient, lab_space, user_a) -> None:
        response = client.get(
            f"{BASE}/{lab_space.slug}/availability",
            params={"start": "2026-03-12T00:00:00", "end": "2026-03-13T00:00:00"},
            headers=as_user(user_a),
        )

        assert response.status_code == 422

    def test_inactive_space_is_404(self, client: TestClient, make_space, user_a) -> None:
        closed = make_space("closed-lab", is_active=False)

        response = client.get(
            f"{BASE}/{closed.slug}/availability",
            params={"start": "2026-03-12T00:00:00Z", "end": "2026-03-13T00:00:00Z"},
            headers=as_user(user_a),
        )

        assert response.status_code == 404

