"""Tests for the development-only database clean"""

from javidan.db_queries import count_rows


class TestClean:

    def test_refused_in_production_even_with_secret(self, production_client):
        response = production_client.post("/admin/clean", json={"secret": "test-secret"})

        assert response.status_code == 403

    def test_wrong_secret(self, client, submit_victim, db):
        submit_victim()

        response = client.post("/admin/clean", json={"secret": "guess"})

        assert response.status_code == 401
        assert response.json()["error"] == "Invalid admin secret"
        assert count_rows(db, "records") == 1

    def test_missing_body(self, client):
        assert client.post("/admin/clean").status_code == 401

    def test_clean_wipes_everything(self, client, db):
        record_id = client.post(
            "/submissions/victim",
            data={"fullName": "Ali Rezaei", "location": "Tehran", "twitterUrl1": "https://x.com/a/status/1"},
            files=[("primaryFile", ("p.jpg", b"jpeg", "image/jpeg"))],
        ).json()["id"]
        client.post("/field-updates", json={
            "recordType": "victim", "recordId": record_id, "fieldName": "hashtags", "value": "#x",
        })

        response = client.post("/admin/clean", json={"secret": "test-secret"})

        assert response.status_code == 200
        for table in ("records", "media", "twitter_links", "field_updates"):
            assert count_rows(db, table) == 0

        # ids restart after a clean
        new_id = client.post("/submissions/victim", data={"fullName": "Sara Mohammadi", "location": "Karaj"}).json()["id"]
        assert new_id == 1
