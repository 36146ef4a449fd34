"""Integration tests for the JSON collections API."""

from datetime import timedelta

import pytest
from fastapi.testclient import TestClient

from collectionwatch.infrastructure.persistence import CollectionRepository
from collectionwatch.infrastructure.persistence.repositories import LINK_MODELS


@pytest.fixture
def collection_id(client: TestClient, catalog_ids) -> int:
    response = client.post("/api/collections", json={"owner_id": catalog_ids.alice})
    assert response.status_code == 201
    return response.json()["id"]


class TestCreateAndRead:
    def test_create_with_defaults(self, client: TestClient, catalog_ids, now) -> None:
        response = client.post(
            "/api/collections", json={"owner_id": catalog_ids.alice, "is_public": True}
        )

        assert response.status_code == 201
        body = response.json()
        assert body["owner_id"] == catalog_ids.alice
        assert body["is_public"] is True
        assert body["notification_lead_days"] == 7
        assert body["email_notifications"] is True
        assert 9 in body["ignored_attributes"]
        assert body["ignore_time_range"] is None
        assert body["last_checked"].startswith(
            (now - timedelta(days=7)).strftime("%Y-%m-%dT%H:%M:%S")
        )

    def test_unknown_owner_is_404(self, client: TestClient) -> None:
        response = client.post("/api/collections", json={"owner_id": 999})

        assert response.status_code == 404
        assert response.json() == {"detail": "Moderator with id 999 not found"}

    def test_unknown_attribute_is_422(self, client: TestClient, catalog_ids) -> None:
        response = client.post(
            "/api/collections",
            json={"owner_id": catalog_ids.alice, "ignored_attributes": [1, 77]},
        )

        assert response.status_code == 422
        assert "77" in response.json()["detail"]

    def test_negative_lead_days_is_422(self, client: TestClient, catalog_ids) -> None:
        response = client.post(
            "/api/collections",
            json={"owner_id": catalog_ids.alice, "notification_lead_days": -1},
        )
        assert response.status_code == 422

    def test_get_and_missing(self, client: TestClient, collection_id: int) -> None:
        assert client.get(f"/api/collections/{collection_id}").json()["id"] == collection_id
        assert client.get("/api/collections/999").status_code == 404

    def test_list_by_owner_and_public(self, client: TestClient, catalog_ids) -> None:
        client.post("/api/collections", json={"owner_id": catalog_ids.alice})
        client.post(
            "/api/collections", json={"owner_id": catalog_ids.bob, "is_public": True}
        )

        mine = client.get("/api/collections", params={"owner_id": catalog_ids.alice})
        public = client.get("/api/collections")

        assert mine.json()["total"] == 1
        assert [c["owner_id"] for c in public.json()["collections"]] == [catalog_ids.bob]


class TestUpdateAndDelete:
    def test_patch_changes_only_given_fields(
        self, client: TestClient, collection_id: int
    ) -> None:
        response = client.patch(
            f"/api/collections/{collection_id}",
            json={"notification_lead_days": 2, "ignored_attributes": []},
        )

        assert response.status_code == 200
        body = response.json()
        assert body["notification_lead_days"] == 2
        assert body["ignored_attributes"] == []
        assert body["is_public"] is False

    def test_delete(self, client: TestClient, collection_id: int, catalog_ids) -> None:
        client.put(f"/api/collections/{collection_id}/watch/{catalog_ids.radiohead}")

        assert client.delete(f"/api/collections/{collection_id}").status_code == 204
        assert client.get(f"/api/collections/{collection_id}/links").status_code == 404
        assert client.delete(f"/api/collections/{collection_id}").status_code == 404


class TestLinks:
    def test_put_is_idempotent(
        self, client: TestClient, collection_id: int, catalog_ids
    ) -> None:
        url = f"/api/collections/{collection_id}/watch/{catalog_ids.radiohead}"

        assert client.put(url).json()["changed"] is True
        assert client.put(url).json()["changed"] is False

        links = client.get(f"/api/collections/{collection_id}/links").json()
        assert links["watched_artist_ids"] == [catalog_ids.radiohead]

    def test_every_link_kind(
        self, client: TestClient, collection_id: int, catalog_ids
    ) -> None:
        base = f"/api/collections/{collection_id}"
        client.put(f"{base}/discography/{catalog_ids.portishead}")
        client.put(f"{base}/owned/{catalog_ids.dummy}")
        client.put(f"{base}/ignored/{catalog_ids.live_set}")

        links = client.get(f"{base}/links").json()
        assert links == {
            "collection_id": collection_id,
            "watched_artist_ids": [],
            "discography_artist_ids": [catalog_ids.portishead],
            "owned_release_ids": [catalog_ids.dummy],
            "ignored_release_ids": [catalog_ids.live_set],
        }

        assert client.delete(f"{base}/owned/{catalog_ids.dummy}").json()["changed"] is True
        assert client.delete(f"{base}/owned/{catalog_ids.dummy}").json()["changed"] is False

    def test_racing_insert_is_409(
        self, client: TestClient, collection_id: int, catalog_ids, monkeypatch
    ) -> None:
        url = f"/api/collections/{collection_id}/watch/{catalog_ids.radiohead}"
        client.put(url)

        # The loser of a race checked for the pair before the winner committed
        async def insert_unchecked(self, link_type, collection_id, target_id):
            self.session.add(
                LINK_MODELS[link_type](collection_id=collection_id, target_id=target_id)
            )
            await self.session.flush()
            return True

        monkeypatch.setattr(CollectionRepository, "add_link", insert_unchecked)
        response = client.put(url)

        assert response.status_code == 409
        assert response.json() == {"detail": "Conflicting write, please retry"}
        links = client.get(f"/api/collections/{collection_id}/links").json()
        assert links["watched_artist_ids"] == [catalog_ids.radiohead]

    def test_unknown_target_is_404(
        self, client: TestClient, collection_id: int
    ) -> None:
        response = client.put(f"/api/collections/{collection_id}/owned/999")

        assert response.status_code == 404
        assert response.json() == {"detail": "Release with id 999 not found"}


class TestIgnoreTimeRange:
    def test_set_and_clear(self, client: TestClient, collection_id: int) -> None:
        url = f"/api/collections/{collection_id}/ignore-time-range"
        body = {
            "range_start": "2026-06-01T00:00:00Z",
            "range_end": "2026-06-30T00:00:00Z",
        }

        response = client.put(url, json=body)
        assert response.status_code == 200
        assert response.json()["id"] is not None

        collection = client.get(f"/api/collections/{collection_id}").json()
        assert collection["ignore_time_range"]["id"] == response.json()["id"]

        assert client.delete(url).status_code == 204
        assert client.get(f"/api/collections/{collection_id}").json()[
            "ignore_time_range"
        ] is None

    def test_reversed_range_is_422(self, client: TestClient, collection_id: int) -> None:
        response = client.put(
            f"/api/collections/{collection_id}/ignore-time-range",
            json={
                "range_start": "2026-06-30T00:00:00Z",
                "range_end": "2026-06-01T00:00:00Z",
            },
        )
        assert response.status_code == 422


class TestLastCheckedAndDue:
    def test_advance_rejects_older(self, client: TestClient, collection_id: int, now) -> None:
        url = f"/api/collections/{collection_id}/last-checked"

        older = client.post(url, json={"timestamp": (now - timedelta(days=30)).isoformat()})
        newer = client.post(url, json={"timestamp": now.isoformat()})

        assert older.status_code == 422
        assert newer.status_code == 200
        assert newer.json()["next_check_at"].startswith("2026-03-08T12:00:00")

    def test_due_listing(self, client: TestClient, collection_id: int, now) -> None:
        due = client.get("/api/collections/due")
        assert [c["id"] for c in due.json()["collections"]] == [collection_id]

        client.post(
            f"/api/collections/{collection_id}/last-checked",
            json={"timestamp": now.isoformat()},
        )

        assert client.get("/api/collections/due").json()["total"] == 0
        later = client.get(
            "/api/collections/due", params={"now": (now + timedelta(days=7)).isoformat()}
        )
        assert later.json()["total"] == 1


class TestTagsAndSweep:
    def test_tag_votes(self, client: TestClient, catalog_ids) -> None:
        url = f"/api/tags/artist/{catalog_ids.radiohead}/5"

        first = client.put(url, json={"moderator_id": catalog_ids.alice})
        again = client.put(url, json={"moderator_id": catalog_ids.alice})
        removed = client.delete(url, params={"moderator_id": catalog_ids.alice})

        assert first.json()["changed"] is True
        assert again.json()["changed"] is False
        assert removed.json()["changed"] is True

    def test_tag_vote_unknown_target_is_422(self, client: TestClient, catalog_ids) -> None:
        response = client.put(
            "/api/tags/genre/1/5", json={"moderator_id": catalog_ids.alice}
        )
        assert response.status_code == 422

    def test_sweep(self, client: TestClient, collection_id: int, catalog_ids, providers) -> None:
        client.put(f"/api/collections/{collection_id}/watch/{catalog_ids.radiohead}")

        response = client.post("/api/notifications/sweep")

        assert response.status_code == 200
        body = response.json()
        assert body["collections_checked"] == 1
        assert body["notifications_sent"] == 2
        assert body["processed_collection_ids"] == [collection_id]
        assert sum(len(p.sent) for p in providers) == 2

        assert client.post("/api/notifications/sweep").json()["collections_checked"] == 0
