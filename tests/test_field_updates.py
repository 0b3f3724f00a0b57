"""Tests for community field fills: allow-list, no-overwrite, audit and rate limit"""

from datetime import datetime, timedelta, timezone

import pytest

from javidan import db_queries
from javidan.errors import RateLimitError
from javidan.subjects import SubjectKind

VICTIM_FILLS = [
    ("first_name_en", "Ali"),
    ("last_name_en", "Rezaei"),
    ("birth_year", 1998),
    ("age", "24"),
    ("incident_date", "2022-09-20"),
    ("national_id", "0012345678"),
    ("father_name", "Hassan"),
    ("mother_name", "Maryam"),
    ("perpetrator", "Basij"),
    ("hashtags", "#Tehran"),
    ("additional_info", "Shot during protest"),
]


def _fill(client, record_id, field_name, value, record_type="victim", ip=None):
    headers = {"X-Forwarded-For": ip} if ip else {}
    return client.post("/field-updates", headers=headers, json={
        "recordType": record_type,
        "recordId": record_id,
        "fieldName": field_name,
        "value": value,
    })


class TestFieldFill:

    def test_fill_empty_field_is_audited(self, client, db, submit_victim):
        record_id = submit_victim()

        response = _fill(client, record_id, "national_id", "0012345678", ip="203.0.113.5, 10.0.0.1")

        assert response.status_code == 200
        assert response.json() == {"success": True, "message": "Field updated successfully"}

        row = db.execute("SELECT national_id FROM records WHERE id = ?", (record_id,)).fetchone()
        assert row["national_id"] == "0012345678"

        audit = db.execute("SELECT * FROM field_updates").fetchall()
        assert len(audit) == 1
        assert audit[0]["record_type"] == "victim"
        assert audit[0]["record_id"] == record_id
        assert audit[0]["field_name"] == "national_id"
        assert audit[0]["old_value"] is None
        assert audit[0]["new_value"] == "0012345678"
        assert audit[0]["submitter_ip"] == "203.0.113.5"

    def test_existing_value_is_never_overwritten(self, client, db, submit_victim):
        record_id = submit_victim(nationalId="111")

        response = _fill(client, record_id, "national_id", "222")

        assert response.status_code == 403
        assert response.json()["error"] == "Field already has a value. Cannot overwrite existing data."
        row = db.execute("SELECT national_id FROM records WHERE id = ?", (record_id,)).fetchone()
        assert row["national_id"] == "111"
        assert db_queries.count_rows(db, "field_updates") == 0

    def test_field_not_in_allow_list(self, client, submit_victim):
        record_id = submit_victim()

        response = _fill(client, record_id, "full_name", "Someone Else")

        assert response.status_code == 400

    def test_unknown_record_type(self, client):
        response = _fill(client, 1, "hashtags", "#x", record_type="planet")

        assert response.status_code == 400
        assert response.json()["error"] == "Invalid record type"

    def test_missing_subject(self, client):
        response = _fill(client, 999, "hashtags", "#x")

        assert response.status_code == 404

    def test_blank_value(self, client, submit_victim):
        record_id = submit_victim()

        response = _fill(client, record_id, "hashtags", "   ")

        assert response.status_code == 400

    @pytest.mark.parametrize("value", [{"a": 1}, ["0012345678"]])
    def test_structured_value_rejected(self, client, db, submit_victim, value):
        record_id = submit_victim()

        response = _fill(client, record_id, "national_id", value)

        assert response.status_code == 400
        row = db.execute("SELECT national_id FROM records WHERE id = ?", (record_id,)).fetchone()
        assert row["national_id"] is None
        assert db_queries.count_rows(db, "field_updates") == 0

    def test_invalid_typed_value(self, client, submit_victim):
        record_id = submit_victim()

        response = _fill(client, record_id, "birth_year", "last year")

        assert response.status_code == 400

    def test_missing_body_fields(self, client):
        response = client.post("/field-updates", json={"recordType": "victim"})

        assert response.status_code == 400
        assert response.json()["success"] is False

    def test_document_alias_targets_evidence(self, client, db):
        evidence_id = client.post(
            "/submissions/evidence",
            data={"title": "Order", "description": "Leaked order"},
            files=[("files", ("doc.pdf", b"pdf", "application/pdf"))],
        ).json()["id"]

        response = _fill(client, evidence_id, "hashtags", "#leak", record_type="document")

        assert response.status_code == 200
        row = db.execute("SELECT hashtags FROM evidence WHERE id = ?", (evidence_id,)).fetchone()
        assert row["hashtags"] == "#leak"

    def test_force_coordinates(self, client, db):
        force_id = client.post("/submissions/force", data={"fullName": "Hossein Karimi", "city": "Shiraz"}).json()["id"]

        response = _fill(client, force_id, "latitude", "29.61", record_type="force")

        assert response.status_code == 200
        row = db.execute("SELECT latitude FROM security_forces WHERE id = ?", (force_id,)).fetchone()
        assert row["latitude"] == pytest.approx(29.61)


class TestRateLimit:

    def test_eleventh_fill_is_rejected(self, client, db, submit_victim):
        record_id = submit_victim()

        for field_name, value in VICTIM_FILLS[:10]:
            response = _fill(client, record_id, field_name, value, ip="198.51.100.7")
            assert response.status_code == 200, response.text

        field_name, value = VICTIM_FILLS[10]
        response = _fill(client, record_id, field_name, value, ip="198.51.100.7")

        assert response.status_code == 429
        assert response.json()["error"] == "Rate limit exceeded. Maximum 10 updates per day."
        row = db.execute("SELECT additional_info FROM records WHERE id = ?", (record_id,)).fetchone()
        assert row["additional_info"] is None

        other_ip = _fill(client, record_id, field_name, value, ip="198.51.100.8")
        assert other_ip.status_code == 200

    def test_rate_limit_checked_before_existence(self, db):
        now = datetime(2024, 3, 1, 12, 0, tzinfo=timezone.utc)
        db.executemany(
            "INSERT INTO field_updates (record_type, record_id, field_name, new_value, submitter_ip, created_at) "
            "VALUES ('victim', 1, 'hashtags', 'x', '192.0.2.1', ?)",
            [("2024-03-01 0%d:00:00" % hour,) for hour in range(10)]
        )

        with pytest.raises(RateLimitError):
            db_queries.fill_field(db, SubjectKind.VICTIM, 12345, "hashtags", "#x", "192.0.2.1", now=now)

    def test_limit_resets_at_utc_midnight(self, db, submit_victim):
        record_id = submit_victim()
        yesterday = datetime(2024, 3, 1, 23, 30, tzinfo=timezone.utc)
        db.executemany(
            "INSERT INTO field_updates (record_type, record_id, field_name, new_value, submitter_ip, created_at) "
            "VALUES ('victim', 1, 'hashtags', 'x', '192.0.2.1', ?)",
            [("2024-03-01 23:%02d:00" % minute,) for minute in range(10)]
        )

        db_queries.fill_field(
            db, SubjectKind.VICTIM, record_id, "hashtags", "#x", "192.0.2.1",
            now=yesterday + timedelta(hours=1)
        )

        row = db.execute("SELECT hashtags FROM records WHERE id = ?", (record_id,)).fetchone()
        assert row["hashtags"] == "#x"
