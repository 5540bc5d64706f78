from __future__ import annotations

import json
from pathlib import Path

import jsonschema
import pytest

from roster_import.models.row_record import PersonName, Provider, RowRecord
from roster_import.models.session import AuthSession
from roster_import.services.api_client import ImportClient
from roster_import.services.importer import RosterImporter
from tests.helpers import FakeBackend, make_excel

"""Request body sent to POST /users/import."""

SCHEMA_PATH = Path(__file__).resolve().parents[2] / "contracts" / "import_request_schema.json"


@pytest.fixture(scope="module")
def schema() -> dict:
    return json.loads(SCHEMA_PATH.read_text(encoding="utf-8"))


def test_provider_values_match_schema(schema):
    provider_enum = schema["properties"]["users"]["items"]["properties"]["provider"]["enum"]
    assert sorted(provider_enum) == sorted(p.value for p in Provider)


def test_row_payloads_match_schema(schema):
    users = [
        RowRecord(PersonName("นาย", "สมชาย", "ใจดี"), "s@nu.ac.th", "STUDENT", "GOOGLE", student_id="12345678").to_payload(),
        RowRecord("Dr. In", "in@nu.ac.th", "APPROVER_IN", "GOOGLE").to_payload(),
        RowRecord("Ms. Out", "out@hospital.org", "APPROVER_OUT", "LOCAL", password="pw-1").to_payload(),
    ]
    jsonschema.validate({"users": users}, schema)


def test_submitted_body_matches_schema(schema, temp_workdir: Path, backend: FakeBackend):
    roster = make_excel(
        temp_workdir / "staff.xlsx",
        [
            ["name", "email", "role", "provider", "password"],
            ["Dr. In", "in@nu.ac.th", "APPROVER_IN", "google", None],
            ["Ms. Out", "out@hospital.org", "APPROVER_OUT", "LOCAL", "pw-1"],
            ["Mr. Book", "book@hospital.org", "EXPERIENCE_MANAGER", "LOCAL", "pw-2"],
            # invalid: blank provider
            ["No Provider", "nop@hospital.org", "EXPERIENCE_MANAGER", None, "pw-3"],
            # invalid: never sent
            ["No Pass", "np@hospital.org", "APPROVER_OUT", "LOCAL", None],
        ],
    )
    client = ImportClient("http://backend.test", transport=backend.transport)
    importer = RosterImporter(client, AuthSession(access_token="tok"))
    importer.load_file(roster)
    importer.submit()

    (body,) = backend.bodies()
    jsonschema.validate(body, schema)
    assert [u["email"] for u in body["users"]] == [
        "in@nu.ac.th",
        "out@hospital.org",
        "book@hospital.org",
    ]
    assert body["users"][0]["provider"] == "GOOGLE"
    assert body["users"][2]["provider"] == "LOCAL"


def test_schema_rejects_unknown_role(schema):
    body = {"users": [RowRecord("X", "x@nu.ac.th", "ADMIN", "LOCAL").to_payload()]}
    with pytest.raises(jsonschema.exceptions.ValidationError):
        jsonschema.validate(body, schema)
