import base64
import json
import ssl
from typing import Any, Dict, List, Optional
from urllib.error import HTTPError, URLError
from urllib.request import Request, urlopen


class WorkerAPIError(Exception):
    pass


class WorkerAPI:
    """Client for the worker service HTTP API."""

    def __init__(
        self,
        base_url: str,
        username: str,
        password: str,
        ca_file: Optional[str] = None,
        verify_tls: bool = True,
        timeout_seconds: int = 10,
    ):
        self.base_url = base_url.rstrip("/")
        self.username = username
        self.password = password
        self.timeout_seconds = timeout_seconds
        self._ssl_context = self._build_ssl_context(ca_file, verify_tls)

    @staticmethod
    def _build_ssl_context(ca_file: Optional[str], verify_tls: bool) -> ssl.SSLContext:
        context = ssl.create_default_context(cafile=ca_file or None)
        if not verify_tls:
            context.check_hostname = False
            context.verify_mode = ssl.CERT_NONE
        return context

    def start_job(self, command: str) -> Dict[str, Any]:
        return self._request("POST", "/start", {"command": command})

    def stop_job(self, job_id: str) -> Dict[str, Any]:
        return self._request("PUT", "/stop", {"id": job_id})

    def get_job(self, job_id: str) -> Dict[str, Any]:
        return self._request("GET", f"/jobs/{job_id}")

    def list_jobs(self) -> List[Dict[str, Any]]:
        return self._request("GET", "/jobs")

    def _request(self, method: str, path: str, payload: Optional[Dict[str, Any]] = None) -> Any:
        credentials = base64.b64encode(f"{self.username}:{self.password}".encode("utf-8")).decode("ascii")
        headers = {"Accept": "application/json", "Authorization": f"Basic {credentials}"}
        body = None
        if payload is not None:
            body = json.dumps(payload).encode("utf-8")
            headers["Content-Type"] = "application/json"

        request = Request(self.base_url + path, data=body, headers=headers, method=method)
        context = self._ssl_context if self.base_url.startswith("https") else None
        try:
            with urlopen(request, timeout=self.timeout_seconds, context=context) as response:
                return json.loads(response.read().decode("utf-8"))
        except HTTPError as e:
            raise WorkerAPIError(f"error: {self._error_message(e)}") from e
        except URLError as e:
            raise WorkerAPIError(f"Error sending request: {e.reason}") from e

    @staticmethod
    def _error_message(error: HTTPError) -> str:
        try:
            data = json.loads(error.read().decode("utf-8"))
        except ValueError:
            return f"{error.code} {error.reason}"
        if isinstance(data, dict) and "error" in data:
            return str(data["error"])
        return f"{error.code} {error.reason}"
