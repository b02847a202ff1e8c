import pytest
from agent_registry.repositories.agent_repo import AgentStore
from tests.conftest import AGENT_FORM, BLOB_BASE_URL, FakeBlobStore


def pdf(name: str, content: bytes = b"%PDF-1.4 test"):
    return (name, content, "application/pdf")


class TestCreateAgent:
    def test_create_returns_record_with_generated_agent_id(self, client, create_agent):
        response = create_agent()

        assert response.status_code == 201
        body = response.json()
        assert body["message"] == "Agent created successfully"
        agent = body["agent"]
        for key, value in AGENT_FORM.items():
            assert agent[key] == value
        assert agent["agentId"]
        assert agent["agentId"] != agent["id"]

    def test_created_agent_round_trips_through_fetch(self, client, create_agent):
        created = create_agent(files={"idProof": pdf("id.pdf")}).json()["agent"]

        response = client.get(f"/api/agents/{created['id']}")

        assert response.status_code == 200
        fetched = response.json()
        assert fetched["agentId"] == created["agentId"]
        assert fetched["idProofFilePath"] == created["idProofFilePath"]
        for key, value in AGENT_FORM.items():
            assert fetched[key] == value
        unexpected = set(fetched) - set(AGENT_FORM) - {
            "id", "agentId", "idProofFilePath", "createdAt", "updatedAt"
        }
        assert unexpected == set()

    def test_file_parts_are_uploaded_and_stored_as_file_paths(self, create_agent, blob_store):
        response = create_agent(files={
            "idProof": pdf("id.pdf", b"id-bytes"),
            "addressProof": ("address.png", b"png-bytes", "image/png"),
        })

        agent = response.json()["agent"]
        assert len(blob_store.uploads) == 2
        id_blob = agent["idProofFilePath"].rsplit("/", 1)[-1]
        assert agent["idProofFilePath"].startswith(f"{BLOB_BASE_URL}/idProof-")
        assert blob_store.uploads[id_blob]["content"] == b"id-bytes"
        assert blob_store.uploads[id_blob]["content_type"] == "application/pdf"
        address_blob = agent["addressProofFilePath"].rsplit("/", 1)[-1]
        assert blob_store.uploads[address_blob]["content_type"] == "image/png"

    def test_empty_file_parts_are_skipped(self, create_agent, blob_store):
        response = create_agent(files={"idProof": pdf("id.pdf", b"")})

        assert response.status_code == 201
        assert "idProofFilePath" not in response.json()["agent"]
        assert blob_store.uploads == {}

    @pytest.mark.parametrize("field", list(AGENT_FORM))
    def test_missing_required_field_is_rejected(self, client, field):
        data = {k: v for k, v in AGENT_FORM.items() if k != field}

        response = client.post("/api/agents", data=data)

        assert response.status_code == 400
        assert response.json() == {
            "message": f"Missing required field: {field}",
            "error": "ValidationError",
        }
        assert client.get("/api/agents").json() == []

    def test_blank_required_field_is_rejected(self, create_agent):
        response = create_agent(gender="   ")

        assert response.status_code == 400
        assert response.json()["message"] == "Missing required field: gender"

    def test_duplicate_email_is_rejected(self, client, create_agent):
        create_agent()

        response = create_agent(mobileNumber="9000000001", firstName="Other")

        assert response.status_code == 400
        assert response.json() == {"message": "Email already exists", "error": "DuplicateError"}
        assert len(client.get("/api/agents").json()) == 1

    def test_duplicate_mobile_number_is_rejected(self, create_agent):
        create_agent()

        response = create_agent(email="someone.else@example.com")

        assert response.status_code == 400
        assert response.json()["message"] == "Mobile number already exists"

    def test_duplicate_check_runs_before_upload(self, create_agent, blob_store):
        create_agent()

        create_agent(mobileNumber="9000000001", files={"idProof": pdf("id.pdf")})

        assert blob_store.uploads == {}

    def test_unknown_form_fields_are_not_persisted(self, client, create_agent):
        response = create_agent(isAdmin="true", agentId="client-chosen")

        agent = response.json()["agent"]
        assert "isAdmin" not in agent
        assert agent["agentId"] != "client-chosen"

    def test_json_body_is_a_parse_error(self, client):
        response = client.post("/api/agents", json=AGENT_FORM)

        assert response.status_code == 400
        assert response.json()["error"] == "ParseError"

    def test_malformed_multipart_is_a_parse_error(self, client):
        response = client.post(
            "/api/agents",
            content=b"--xyz\r\nContent-Disposition: form-data\r\n\r\nbroken",
            headers={"Content-Type": "multipart/form-data; boundary=xyz"},
        )

        assert response.status_code == 400
        assert response.json()["error"] == "ParseError"


class TestUploadFailure:
    @pytest.fixture
    def blob_store(self):
        return FakeBlobStore(fail=True)

    def test_upload_failure_aborts_save(self, client, create_agent):
        response = create_agent(files={"idProof": pdf("id.pdf")})

        assert response.status_code == 500
        assert response.json()["error"] == "UploadError"
        assert client.get("/api/agents").json() == []


class TestReadAgents:
    def test_list_returns_all_agents(self, client, create_agent):
        create_agent()
        create_agent(email="second@example.com", mobileNumber="9000000002")

        response = client.get("/api/agents")

        assert response.status_code == 200
        emails = sorted(agent["email"] for agent in response.json())
        assert emails == ["asha.verma@example.com", "second@example.com"]

    def test_unknown_id_is_not_found(self, client):
        response = client.get("/api/agents/does-not-exist")

        assert response.status_code == 404
        assert response.json() == {"message": "Agent not found", "error": "NotFoundError"}

    def test_database_failure_returns_generic_error(self, client, monkeypatch):
        async def broken_find_all(self):
            raise RuntimeError("connection refused by db-host-01")

        monkeypatch.setattr(AgentStore, "find_all", broken_find_all)

        response = client.get("/api/agents")

        assert response.status_code == 500
        assert response.json() == {"message": "Internal Server Error", "error": "InternalError"}
        assert "db-host-01" not in response.text


class TestUpdateAgent:
    def test_new_file_overwrites_only_its_slot(self, client, create_agent):
        original = create_agent(files={
            "idProof": pdf("id.pdf", b"v1"),
            "panCard": pdf("pan.pdf", b"pan"),
        }).json()["agent"]

        response = client.put(
            f"/api/agents/{original['id']}",
            files={"idProof": pdf("id-new.pdf", b"v2")},
        )

        assert response.status_code == 200
        assert response.json()["message"] == "Agent updated successfully"
        updated = client.get(f"/api/agents/{original['id']}").json()
        assert updated["idProofFilePath"] != original["idProofFilePath"]
        assert updated["panCardFilePath"] == original["panCardFilePath"]
        for key in list(AGENT_FORM) + ["agentId"]:
            assert updated[key] == original[key]

    def test_scalar_fields_are_merged(self, client, create_agent):
        original = create_agent().json()["agent"]

        response = client.put(f"/api/agents/{original['id']}", data={"lastName": "Sharma"})

        agent = response.json()["agent"]
        assert agent["lastName"] == "Sharma"
        assert agent["firstName"] == original["firstName"]
        assert agent["email"] == original["email"]

    def test_update_does_not_require_all_fields(self, client, create_agent):
        original = create_agent().json()["agent"]

        response = client.put(f"/api/agents/{original['id']}", data={"gender": "other"})

        assert response.status_code == 200

    def test_update_to_another_agents_email_is_rejected(self, client, create_agent):
        create_agent()
        second = create_agent(email="second@example.com", mobileNumber="9000000002").json()["agent"]

        response = client.put(
            f"/api/agents/{second['id']}", data={"email": AGENT_FORM["email"]}
        )

        assert response.status_code == 400
        assert response.json()["error"] == "DuplicateError"

    def test_update_keeping_own_email_is_allowed(self, client, create_agent):
        original = create_agent().json()["agent"]

        response = client.put(
            f"/api/agents/{original['id']}",
            data={"email": original["email"], "firstName": "Asha R."},
        )

        assert response.status_code == 200

    def test_update_unknown_id_is_not_found(self, client):
        response = client.put("/api/agents/does-not-exist", data={"firstName": "X"})

        assert response.status_code == 404
        assert response.json()["error"] == "NotFoundError"

    def test_update_without_body_on_unknown_id_is_not_found(self, client):
        response = client.put("/api/agents/does-not-exist")

        assert response.status_code == 404
        assert response.json()["error"] == "NotFoundError"

    def test_update_without_body_leaves_record_unchanged(self, client, create_agent):
        original = create_agent(files={"idProof": pdf("id.pdf")}).json()["agent"]

        response = client.put(f"/api/agents/{original['id']}")

        assert response.status_code == 200
        updated = client.get(f"/api/agents/{original['id']}").json()
        for key in list(AGENT_FORM) + ["agentId", "idProofFilePath"]:
            assert updated[key] == original[key]

    def test_non_form_body_on_update_is_a_parse_error(self, client, create_agent):
        original = create_agent().json()["agent"]

        response = client.put(f"/api/agents/{original['id']}", json={"firstName": "X"})

        assert response.status_code == 400
        assert response.json()["error"] == "ParseError"

    def test_agent_removed_during_update_is_not_found(self, client, create_agent, monkeypatch):
        original = create_agent().json()["agent"]

        async def removed_concurrently(self, agent_id, changes, documents):
            return None

        monkeypatch.setattr(AgentStore, "update_by_id", removed_concurrently)

        response = client.put(f"/api/agents/{original['id']}", data={"gender": "other"})

        assert response.status_code == 404
        assert response.json() == {"message": "Agent not found", "error": "NotFoundError"}


class TestDeleteAgent:
    def test_delete_then_fetch_is_not_found(self, client, create_agent):
        agent = create_agent().json()["agent"]

        response = client.delete(f"/api/agents/{agent['id']}")

        assert response.status_code == 200
        assert response.json() == {"message": "Agent deleted successfully"}
        assert client.get(f"/api/agents/{agent['id']}").status_code == 404

    def test_delete_unknown_id_is_not_found(self, client):
        response = client.delete("/api/agents/does-not-exist")

        assert response.status_code == 404

    def test_delete_leaves_uploaded_blobs(self, client, create_agent, blob_store):
        agent = create_agent(files={"idProof": pdf("id.pdf")}).json()["agent"]

        client.delete(f"/api/agents/{agent['id']}")

        assert len(blob_store.uploads) == 1
