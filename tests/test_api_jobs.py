import time
from unittest.mock import patch

import pytest
from fastapi.testclient import TestClient

from worker_service.api.server import create_app
from worker_service.auth.users import MemoryUserRepository

ALICE = ("alice", "alicepassword")
BOB = ("bob", "bobpassword")


@pytest.fixture
def client():
    repository = MemoryUserRepository.from_credentials(dict([ALICE, BOB]))
    with TestClient(create_app(repository)) as client:
        yield client


def wait_for_status(client, job_id, auth, timeout=5.0):
    deadline = time.time() + timeout
    while time.time() < deadline:
        job = client.get(f"/jobs/{job_id}", auth=auth).json()
        if job["status"] != "running":
            return job
        time.sleep(0.05)
    raise AssertionError(f"job {job_id} still running after {timeout}s")


def test_requires_authentication(client):
    response = client.post("/start", json={"command": "echo hello"})
    assert response.status_code == 401
    assert response.json() == {"error": "Unable to authenticate user"}


def test_rejects_wrong_password(client):
    response = client.get("/jobs", auth=("alice", "wrong"))
    assert response.status_code == 401
    assert response.json() == {"error": "Unable to authenticate user"}


def test_start_job(client):
    response = client.post("/start", json={"command": "echo hello"}, auth=ALICE)

    assert response.status_code == 200
    job = response.json()
    assert job["id"] != ""
    assert job["status"] == "running"
    assert job["command"] == "echo hello"
    assert job["exit_code"] == ""
    assert job["owner"] == "alice"


def test_get_completed_job(client):
    started = client.post("/start", json={"command": "echo hello world"}, auth=ALICE).json()

    job = wait_for_status(client, started["id"], ALICE)

    assert job["status"] == "completed"
    assert job["stdout"] == "hello world\n"
    assert job["exit_code"] == "0"


def test_start_invalid_command(client):
    response = client.post("/start", json={"command": "an invalid command"}, auth=ALICE)

    assert response.status_code == 500
    assert response.json() == {"error": "Failed to start job"}

    jobs = client.get("/jobs", auth=ALICE).json()
    assert [job["status"] for job in jobs] == ["errored"]


def test_stop_job(client):
    started = client.post("/start", json={"command": "sleep 5"}, auth=ALICE).json()

    response = client.put("/stop", json={"id": started["id"]}, auth=ALICE)

    assert response.status_code == 200
    job = response.json()
    assert job["status"] == "stopped"
    assert job["exit_code"] == "-1"

    time.sleep(0.2)
    job = client.get(f"/jobs/{started['id']}", auth=ALICE).json()
    assert job["status"] == "stopped"
    assert job["exit_code"] == "-1"


def test_other_user_cannot_see_job(client):
    started = client.post("/start", json={"command": "sleep 5"}, auth=ALICE).json()

    get_response = client.get(f"/jobs/{started['id']}", auth=BOB)
    stop_response = client.put("/stop", json={"id": started["id"]}, auth=BOB)

    assert get_response.status_code == 404
    assert get_response.json() == {"error": "Failed to find job"}
    assert stop_response.status_code == 404
    assert client.get(f"/jobs/{started['id']}", auth=ALICE).json()["status"] == "running"
    assert client.get("/jobs", auth=BOB).json() == []


def test_get_unknown_job(client):
    response = client.get("/jobs/does-not-exist", auth=ALICE)

    assert response.status_code == 404
    assert response.json() == {"error": "Failed to find job"}


def test_malformed_start_request(client):
    response = client.post("/start", content=b"not json", auth=ALICE,
                           headers={"Content-Type": "application/json"})

    assert response.status_code == 400
    assert response.json() == {"error": "Failed to parse request"}


def test_stop_request_without_id(client):
    response = client.put("/stop", json={}, auth=ALICE)

    assert response.status_code == 400
    assert response.json() == {"error": "Failed to parse request"}


def test_list_jobs(client):
    first = client.post("/start", json={"command": "true"}, auth=ALICE).json()
    second = client.post("/start", json={"command": "echo hi"}, auth=ALICE).json()

    jobs = client.get("/jobs", auth=ALICE).json()

    assert [job["id"] for job in jobs] == [first["id"], second["id"]]


def test_version_does_not_require_auth(client):
    response = client.get("/info/version")

    assert response.status_code == 200
    body = response.json()
    assert set(body) == {"status", "data"}
    assert body["status"] == "success"
    assert body["data"]["version"]


def test_stop_failure_is_reported(client):
    from worker_service.jobs.errors import StopFailure

    started = client.post("/start", json={"command": "sleep 5"}, auth=ALICE).json()
    runner = client.app.state.job_runner

    with patch.object(runner, "stop", side_effect=StopFailure("signal failed", job_id=started["id"])):
        response = client.put("/stop", json={"id": started["id"]}, auth=ALICE)

    assert response.status_code == 500
    assert response.json() == {"error": "Failed to stop job. The job may have already finished."}
    assert client.get(f"/jobs/{started['id']}", auth=ALICE).json()["status"] == "running"
