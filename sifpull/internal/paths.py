import os
from pathlib import Path

from sifpull.internal.constants import REMOTE_CONFIG_FILE_NAME


# ---------------------------------------------------------------------
# Base directories
# ---------------------------------------------------------------------

def get_app_data_dir() -> Path:
    """
    Returns the application data directory.

    - Windows: %APPDATA%\\sifpull
    - Linux/macOS: ~/.sifpull
    """
    if os.name == "nt":  # Windows
        base = os.environ.get("APPDATA", str(Path.home()))
        path = Path(base) / "sifpull"
    else:  # Linux / macOS
        path = Path.home() / ".sifpull"

    path.mkdir(parents=True, exist_ok=True)
    return path


def get_cache_dir() -> Path:
    """
    Root of the image cache. SIFPULL_CACHEDIR overrides the default location.
    Not created here; the cache provider owns its creation.
    """
    override = os.environ.get("SIFPULL_CACHEDIR")
    if override:
        return Path(override)
    return get_app_data_dir() / "cache"


def get_log_dir() -> Path:
    path = get_app_data_dir() / "logs"
    path.mkdir(parents=True, exist_ok=True)
    return path


def get_log_file() -> Path:
    return get_log_dir() / "sifpull.log.json"


# ---------------------------------------------------------------------
# Remote endpoint configuration
# ---------------------------------------------------------------------

def get_remote_config_path() -> Path:
    return get_app_data_dir() / REMOTE_CONFIG_FILE_NAME


if __name__ == "__main__":
    print("App Data Dir:", get_app_data_dir())
    print("Cache Dir:", get_cache_dir())
    print("Log File:", get_log_file())
    print("Remote Config:", get_remote_config_path())
