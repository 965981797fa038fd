from unittest.mock import patch

from click.testing import CliRunner

from worker_service.cli import main
from worker_service.client.worker_api import WorkerAPIError

JOB = {
    "id": "abc",
    "command": "echo hello",
    "owner": "user1",
    "status": "completed",
    "exit_code": "0",
    "stdout": "hello\n",
    "stderr": "",
}


def test_jobs_help():
    runner = CliRunner()
    result = runner.invoke(main, ['jobs', '--help'])
    assert result.exit_code == 0
    assert "Start, stop and inspect jobs" in result.output


def test_server_help():
    runner = CliRunner()
    result = runner.invoke(main, ['server', '--help'])
    assert result.exit_code == 0
    assert "Run the API server." in result.output


def test_start_joins_command_words():
    runner = CliRunner()
    with patch("worker_service.client.worker_api.WorkerAPI") as MockAPI:
        MockAPI.return_value.start_job.return_value = JOB
        result = runner.invoke(main, ['jobs', '-u', 'user1', '-p', 'pw', 'start', 'echo', 'hello'])

    assert result.exit_code == 0
    MockAPI.return_value.start_job.assert_called_once_with("echo hello")
    assert "Job ID: abc" in result.output
    assert "Status: completed" in result.output
    assert "ExitCode: 0" in result.output
    assert "User: user1" in result.output


def test_get_job():
    runner = CliRunner()
    with patch("worker_service.client.worker_api.WorkerAPI") as MockAPI:
        MockAPI.return_value.get_job.return_value = JOB
        result = runner.invoke(main, ['jobs', '--url', 'http://localhost:9000', 'get', 'abc'])

    assert result.exit_code == 0
    assert MockAPI.call_args[0][0] == "http://localhost:9000"
    MockAPI.return_value.get_job.assert_called_once_with("abc")


def test_stop_job_error():
    runner = CliRunner()
    with patch("worker_service.client.worker_api.WorkerAPI") as MockAPI:
        MockAPI.return_value.stop_job.side_effect = WorkerAPIError("error: Failed to find job")
        result = runner.invoke(main, ['jobs', 'stop', 'abc'])

    assert result.exit_code == 1
    assert "error: Failed to find job" in result.output


def test_list_jobs():
    runner = CliRunner()
    with patch("worker_service.client.worker_api.WorkerAPI") as MockAPI:
        MockAPI.return_value.list_jobs.return_value = [JOB]
        result = runner.invoke(main, ['jobs', 'list'])

    assert result.exit_code == 0
    assert "abc - completed - echo hello" in result.output


def test_server_requires_cert_and_key_together():
    runner = CliRunner()
    result = runner.invoke(main, ['server', '--cert-file', 'server.crt'])
    assert result.exit_code == 2
    assert "must be provided together" in result.output


def test_server_uses_config_file():
    runner = CliRunner()
    with runner.isolated_filesystem():
        with open("config.yaml", "w") as f:
            f.write("host: 0.0.0.0\nport: 9443\nusers:\n  alice: secret\n")

        with patch("uvicorn.run") as mock_run, \
                patch("worker_service.api.server.create_app") as mock_create_app:
            result = runner.invoke(main, ['server', '--port', '9999'])

    assert result.exit_code == 0
    kwargs = mock_run.call_args[1]
    assert kwargs["host"] == "0.0.0.0"
    assert kwargs["port"] == 9999
    assert kwargs["ssl_certfile"] is None
    repository = mock_create_app.call_args[0][0]
    assert list(repository.users) == ["alice"]
