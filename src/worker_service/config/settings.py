import os

import yaml


def _parse_users(raw: str) -> dict:
    users = {}
    for entry in raw.split(","):
        entry = entry.strip()
        if not entry or ":" not in entry:
            continue
        username, password = entry.split(":", 1)
        users[username.strip()] = password
    return users


class Config:
    host = os.getenv("WORKER_SERVICE_HOST", "127.0.0.1")
    port = int(os.getenv("WORKER_SERVICE_PORT", "8080"))
    cert_file = os.getenv("WORKER_SERVICE_CERT_FILE", "")
    key_file = os.getenv("WORKER_SERVICE_KEY_FILE", "")
    log_level = os.getenv("WORKER_SERVICE_LOG_LEVEL", "INFO").upper()

    # Seed accounts for the in-memory user repository
    users = _parse_users(
        os.getenv(
            "WORKER_SERVICE_USERS",
            "user1:thisispasswordforuser1,user2:thisispasswordforuser2",
        )
    )

    # Client configuration. The default URL targets the server configured above.
    url = os.getenv(
        "WORKER_SERVICE_URL",
        f"{'https' if cert_file else 'http'}://{host}:{port}",
    )
    username = os.getenv("WORKER_SERVICE_USERNAME", "")
    password = os.getenv("WORKER_SERVICE_PASSWORD", "")
    ca_file = os.getenv("WORKER_SERVICE_CA_FILE", "")
    verify_tls = os.getenv("WORKER_SERVICE_VERIFY_TLS", "true").lower() == "true"

config = Config()


CONFIG_FILE_KEYS = {"host", "port", "cert_file", "key_file", "log_level", "users"}


def find_config_file(path=None):
    """Locate the server configuration file.

    An explicit path wins, then ./config.yaml, the user's config directory
    and /etc. Returns None when no file exists.
    """
    if path:
        if not os.path.exists(path):
            raise FileNotFoundError(f"Configuration file {path} not found")
        return path
    for candidate in (
        "config.yaml",
        os.path.expanduser("~/.config/worker-service/config.yaml"),
        "/etc/worker-service/config.yaml",
    ):
        if os.path.exists(candidate):
            return candidate
    return None


def load_config_file(path) -> dict:
    with open(path, "r") as f:
        data = yaml.safe_load(f) or {}

    if not isinstance(data, dict):
        raise ValueError(f"Configuration file {path} must contain a mapping")
    unknown = set(data) - CONFIG_FILE_KEYS
    if unknown:
        raise ValueError(f"Unknown configuration keys: {', '.join(sorted(unknown))}")
    if "users" in data:
        users = data["users"]
        if not isinstance(users, dict):
            raise ValueError("'users' must map usernames to passwords")
        data["users"] = {str(name): str(password) for name, password in users.items()}
    if "port" in data:
        data["port"] = int(data["port"])
    return data
