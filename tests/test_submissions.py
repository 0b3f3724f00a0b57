"""
Tests for the submission endpoints.

Covers required-field validation, name handling, both file paths (raw
multipart and pre-uploaded metadata) and atomicity on storage failure.
"""

import json

from javidan.db_queries import count_rows


def _jpeg(name="photo.jpg"):
    return (name, b"\xff\xd8\xff\xe0 fake jpeg", "image/jpeg")


def _pdf(name="doc.pdf"):
    return (name, b"%PDF-1.4 fake", "application/pdf")


class TestVictimSubmission:

    def test_minimal_submission_splits_name(self, client, db):
        response = client.post("/submissions/victim", data={"fullName": "Ali Rezaei", "location": "Tehran"})

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["message"] == "Record submitted successfully"

        row = db.execute("SELECT * FROM records WHERE id = ?", (body["id"],)).fetchone()
        assert row["full_name"] == "Ali Rezaei"
        assert row["first_name"] == "Ali"
        assert row["last_name"] == "Rezaei"
        assert row["victim_status"] == "killed"
        assert row["evidence_count"] == 0
        assert row["public_id"]

    def test_single_word_name_fills_both_parts(self, client, db):
        response = client.post("/submissions/victim", data={"fullName": "Neda", "location": "Tehran"})

        row = db.execute("SELECT first_name, last_name FROM records WHERE id = ?",
                         (response.json()["id"],)).fetchone()
        assert row["first_name"] == "Neda"
        assert row["last_name"] == "Neda"

    def test_split_names_build_full_name(self, client, db):
        response = client.post("/submissions/victim", data={
            "firstName": "Mahsa", "lastName": "Amini", "location": "Saqqez",
        })

        row = db.execute("SELECT full_name FROM records WHERE id = ?", (response.json()["id"],)).fetchone()
        assert row["full_name"] == "Mahsa Amini"

    def test_missing_required_fields_writes_nothing(self, client, db, storage):
        response = client.post(
            "/submissions/victim",
            data={"age": "23"},
            files=[("primaryFile", _jpeg())],
        )

        assert response.status_code == 400
        body = response.json()
        assert body["success"] is False
        assert "fullName" in body["error"]
        assert "location" in body["error"]
        assert count_rows(db, "records") == 0
        assert count_rows(db, "media") == 0
        assert storage.objects == {}

    def test_invalid_enum_rejected(self, client, db):
        response = client.post("/submissions/victim", data={
            "fullName": "Ali Rezaei", "location": "Tehran", "victimStatus": "missing",
        })

        assert response.status_code == 400
        assert count_rows(db, "records") == 0

    def test_invalid_number_rejected(self, client):
        response = client.post("/submissions/victim", data={
            "fullName": "Ali Rezaei", "location": "Tehran", "birthYear": "nineteen",
        })

        assert response.status_code == 400
        assert "birthYear" in response.json()["error"]

    def test_links_are_stored_and_blank_ones_dropped(self, client, db):
        response = client.post("/submissions/victim", data={
            "fullName": "Ali Rezaei",
            "location": "Tehran",
            "twitterUrl1": "https://x.com/someone/status/1",
            "twitterUrl2": "   ",
            "twitterUrl3": "https://x.com/someone/status/3",
        })

        links = db.execute("SELECT url FROM twitter_links WHERE record_id = ? ORDER BY id",
                           (response.json()["id"],)).fetchall()
        assert [link["url"] for link in links] == [
            "https://x.com/someone/status/1",
            "https://x.com/someone/status/3",
        ]

    def test_primary_image_and_documents(self, client, db, storage):
        response = client.post(
            "/submissions/victim",
            data={"fullName": "Ali Rezaei", "location": "Tehran"},
            files=[
                ("primaryFile", _jpeg()),
                ("files", _pdf("a.pdf")),
                ("files", _pdf("b.pdf")),
            ],
        )

        assert response.status_code == 200
        record_id = response.json()["id"]

        media = db.execute("SELECT * FROM media WHERE record_id = ?", (record_id,)).fetchall()
        assert len(media) == 3
        assert sum(m["is_primary"] for m in media) == 1
        primary = [m for m in media if m["is_primary"]][0]
        assert primary["type"] == "image"
        assert all(m["public_url"].startswith("https://media.example.com/uploads/") for m in media)

        row = db.execute("SELECT evidence_count FROM records WHERE id = ?", (record_id,)).fetchone()
        assert row["evidence_count"] == 3
        assert len(storage.objects) == 3

    def test_zero_byte_files_are_skipped(self, client, db, storage):
        response = client.post(
            "/submissions/victim",
            data={"fullName": "Ali Rezaei", "location": "Tehran"},
            files=[("files", ("empty.pdf", b"", "application/pdf")), ("files", _pdf())],
        )

        record_id = response.json()["id"]
        assert count_rows(db, "media") == 1
        row = db.execute("SELECT evidence_count FROM records WHERE id = ?", (record_id,)).fetchone()
        assert row["evidence_count"] == 1

    def test_pre_uploaded_metadata(self, client, db, storage):
        primary = {
            "key": "uploads/image/1-abc-photo.jpg",
            "publicUrl": "https://media.example.com/uploads/image/1-abc-photo.jpg",
            "fileName": "photo.jpg",
            "fileSize": 2048,
            "type": "image",
        }
        supporting = [
            {
                "r2Key": "uploads/document/2-def-doc.pdf",
                "publicUrl": "https://media.example.com/uploads/document/2-def-doc.pdf",
                "fileName": "doc.pdf",
                "fileSize": 4096,
                "contentType": "application/pdf",
            },
            {
                "key": "uploads/document/3-ghi-empty.pdf",
                "publicUrl": "https://media.example.com/uploads/document/3-ghi-empty.pdf",
                "fileName": "empty.pdf",
                "fileSize": 0,
            },
        ]

        response = client.post("/submissions/victim", data={
            "fullName": "Ali Rezaei",
            "location": "Tehran",
            "primaryFileMeta": json.dumps(primary),
            "uploadedFiles": json.dumps(supporting),
        })

        assert response.status_code == 200
        media = db.execute("SELECT * FROM media ORDER BY id").fetchall()
        assert [m["r2_key"] for m in media] == [
            "uploads/image/1-abc-photo.jpg",
            "uploads/document/2-def-doc.pdf",
        ]
        assert media[0]["is_primary"] == 1
        assert media[1]["type"] == "document"
        assert storage.objects == {}

    def test_malformed_metadata_rejected(self, client, db):
        response = client.post("/submissions/victim", data={
            "fullName": "Ali Rezaei",
            "location": "Tehran",
            "uploadedFiles": "{not json",
        })

        assert response.status_code == 400
        assert response.json()["error"] == "Invalid uploaded file metadata"
        assert count_rows(db, "records") == 0

    def test_metadata_sent_as_file_part_rejected(self, client, db):
        response = client.post(
            "/submissions/victim",
            data={"fullName": "Ali Rezaei", "location": "Tehran"},
            files=[("primaryFileMeta", ("meta.json", b"{}", "application/json"))],
        )

        assert response.status_code == 400
        assert response.json()["error"] == "Invalid uploaded file metadata"
        assert count_rows(db, "records") == 0

    def test_storage_failure_writes_nothing(self, client, db, storage):
        storage.fail = True

        response = client.post(
            "/submissions/victim",
            data={"fullName": "Ali Rezaei", "location": "Tehran"},
            files=[("primaryFile", _jpeg())],
        )

        assert response.status_code == 500
        assert response.json()["error"] == "Failed to upload file"
        assert count_rows(db, "records") == 0
        assert count_rows(db, "media") == 0


class TestOtherKinds:

    def test_force_requires_city(self, client, db):
        response = client.post("/submissions/force", data={"fullName": "Hossein Karimi"})

        assert response.status_code == 400
        assert "city" in response.json()["error"]
        assert count_rows(db, "security_forces") == 0

    def test_force_with_external_links(self, client, db):
        response = client.post("/submissions/force", data={
            "fullName": "Hossein Karimi",
            "city": "Shiraz",
            "organization": "Basij",
            "latitude": "29.59",
            "externalUrl1": "https://example.com/profile",
        })

        assert response.status_code == 200
        assert response.json()["message"] == "Security force submitted successfully"
        row = db.execute("SELECT * FROM security_forces").fetchone()
        assert row["latitude"] == 29.59
        assert count_rows(db, "external_links") == 1

    def test_internal_agent_requires_city(self, client):
        response = client.post("/submissions/agent", data={"fullName": "Reza Ahmadi", "agentType": "internal"})

        assert response.status_code == 400
        assert response.json()["error"] == "City is required for internal agents"

    def test_foreign_agent_requires_country(self, client):
        response = client.post("/submissions/agent", data={
            "fullName": "Reza Ahmadi", "agentType": "foreign", "city": "Tehran",
        })

        assert response.status_code == 400
        assert response.json()["error"] == "Country is required for foreign agents"

    def test_foreign_agent(self, client, db):
        response = client.post("/submissions/agent", data={
            "fullName": "Reza Ahmadi", "agentType": "foreign", "country": "Canada",
        })

        assert response.status_code == 200
        row = db.execute("SELECT agent_type, country FROM ir_agents").fetchone()
        assert row["agent_type"] == "foreign"
        assert row["country"] == "Canada"

    def test_video_requires_a_video_file(self, client, db):
        response = client.post(
            "/submissions/video",
            data={"location": "Zahedan", "description": "Protest"},
            files=[("files", _jpeg())],
        )

        assert response.status_code == 400
        assert response.json()["error"] == "At least one video file is required"
        assert count_rows(db, "videos") == 0

    def test_video_submission(self, client, db):
        response = client.post(
            "/submissions/video",
            data={"location": "Zahedan", "additionalInfo": "Friday prayers"},
            files=[("files", ("clip.mp4", b"\x00\x00\x00 ftyp", "video/mp4"))],
        )

        assert response.status_code == 200
        row = db.execute("SELECT description, evidence_count FROM videos").fetchone()
        assert row["description"] == "Friday prayers"
        assert row["evidence_count"] == 1

    def test_evidence_requires_a_file(self, client, db):
        response = client.post("/submissions/evidence", data={"title": "Order", "description": "Leaked"})

        assert response.status_code == 400
        assert response.json()["error"] == "At least one document/file is required"
        assert count_rows(db, "evidence") == 0

    def test_evidence_submission(self, client, db):
        response = client.post(
            "/submissions/evidence",
            data={"title": "Order", "description": "Leaked order"},
            files=[("files", _pdf())],
        )

        assert response.status_code == 200
        assert count_rows(db, "evidence") == 1
        media = db.execute("SELECT evidence_id, type FROM media").fetchone()
        assert media["type"] == "document"

    def test_unknown_kind(self, client):
        response = client.post("/submissions/martian", data={"fullName": "X"})

        assert response.status_code == 400
        assert response.json()["success"] is False
