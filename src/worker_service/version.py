import subprocess
from functools import lru_cache
from importlib import metadata

# This variable is intended to be overwritten during the build/release process
__version__ = "dev"


@lru_cache(maxsize=None)
def get_version() -> str:
    """
    Returns the current version of the service.
    Priorities:
    1. Explicitly set __version__ (if not "dev")
    2. Installed distribution metadata
    3. Git commit hash (if inside a git repo)
    4. Fallback "dev"
    """
    if __version__ != "dev":
        return __version__

    try:
        return metadata.version("worker-service")
    except metadata.PackageNotFoundError:
        pass

    try:
        cmd = ["git", "rev-parse", "--short", "HEAD"]
        result = subprocess.run(cmd, capture_output=True, text=True, check=True)
        return result.stdout.strip()
    except (subprocess.CalledProcessError, FileNotFoundError):
        pass

    return "dev"
