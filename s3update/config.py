"""
Configuration constants for s3update
"""
import os
from pathlib import Path
from typing import Optional

import yaml

from .errors import ConfigurationError

# ══════════════════════════════════════════════════════════════════════════════
#  DEFAULTS  ── overridden by YAML config, apply_profile() or CLI flags
# ══════════════════════════════════════════════════════════════════════════════

S3_REGION = "us-west-1"
# Any S3-compatible endpoint (MinIO, SeaweedFS, …); None means AWS
S3_ENDPOINT_URL: Optional[str] = None
S3_USE_SSL = True
# None falls through to the boto3 credential chain (env, ~/.aws, instance role)
S3_ACCESS_KEY: Optional[str] = None
S3_SECRET_KEY: Optional[str] = None
S3_SESSION_TOKEN: Optional[str] = None

# Upload workers. The work is network-latency bound, so far more than the
# CPU count; the HTTP connection pool is sized to match.
WORKERS = 32

# Transport-level attempts inside botocore. The sync itself never retries an item.
SDK_MAX_ATTEMPTS = 3

# User-metadata key that carries the content digest of the uploaded bytes
DIGEST_METADATA_KEY = "content-hash"

# Optional exclusion file at the local root
IGNORE_FILE = ".s3ignore"

HASH_CHUNK_SIZE = 64 * 1024

PROJECT_CONFIG_FILE = ".s3update"


# ══════════════════════════════════════════════════════════════════════════════
#  GLOBAL CONFIG FILE  ── $XDG_CONFIG_HOME/s3update/config.yaml
# ══════════════════════════════════════════════════════════════════════════════

def get_global_config_dir() -> Path:
    """Return the global config directory for s3update."""
    xdg = os.environ.get("XDG_CONFIG_HOME", "")
    if xdg:
        return Path(xdg) / "s3update"
    if os.name == "nt":
        appdata = os.environ.get("APPDATA", "")
        if appdata:
            return Path(appdata) / "s3update"
    return Path.home() / ".config" / "s3update"


def load_global_config() -> dict:
    """Load global config; a missing or unreadable file yields {}."""
    cfg_path = get_global_config_dir() / "config.yaml"
    if not cfg_path.is_file():
        return {}
    try:
        with cfg_path.open("r", encoding="utf-8") as f:
            return yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError):
        return {}


# ══════════════════════════════════════════════════════════════════════════════
#  PROJECT CONFIG FILE  ── .s3update (searched upward)
# ══════════════════════════════════════════════════════════════════════════════

def find_project_config(start: Optional[Path] = None) -> Optional[Path]:
    """
    Search upward from *start* (default: cwd) for a .s3update YAML file.
    Returns the Path if found, or None if no .s3update exists in any parent.
    """
    current = (start or Path.cwd()).resolve()
    while True:
        candidate = current / PROJECT_CONFIG_FILE
        if candidate.is_file():
            return candidate
        parent = current.parent
        if parent == current:
            return None
        current = parent


def load_config_file(path: Path) -> dict:
    """Parse a .s3update YAML file and return its contents as a dict."""
    try:
        with path.open("r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}
    except (OSError, yaml.YAMLError) as exc:
        raise ConfigurationError(f"cannot read config file {path}: {exc}") from exc
    if not isinstance(data, dict):
        raise ConfigurationError(f"config file {path} must contain a YAML mapping")
    return data


def get_profile(data: dict, profile_name: str = "default") -> dict:
    """
    Extract a named profile from a .s3update or config.yaml data dict.
    Falls back to the first profile if the named one is not found.
    Returns a flat profile dict merged with top-level defaults.
    """
    defaults = data.get("defaults", {}) or {}
    profiles = data.get("profiles", []) or []
    if not profiles:
        return dict(defaults)
    profile = next((p for p in profiles if p.get("name") == profile_name), None)
    if profile is None:
        profile = profiles[0]
    merged = dict(defaults)
    merged.update(profile)
    return merged


# ══════════════════════════════════════════════════════════════════════════════
#  APPLY PROFILE  ── mutates module-level variables
# ══════════════════════════════════════════════════════════════════════════════

def apply_profile(profile: dict):
    """
    Apply a profile dict to the module-level config variables.
    Supports keys: region, endpoint_url, use_ssl, access_key, secret_key,
                   session_token, workers, max_attempts, metadata_key.
    """
    global S3_REGION, S3_ENDPOINT_URL, S3_USE_SSL
    global S3_ACCESS_KEY, S3_SECRET_KEY, S3_SESSION_TOKEN
    global WORKERS, SDK_MAX_ATTEMPTS, DIGEST_METADATA_KEY

    if "region" in profile:
        S3_REGION = str(profile["region"])
    if "endpoint_url" in profile:
        S3_ENDPOINT_URL = str(profile["endpoint_url"]) if profile["endpoint_url"] else None
    if "use_ssl" in profile:
        S3_USE_SSL = bool(profile["use_ssl"])
    if "access_key" in profile:
        S3_ACCESS_KEY = str(profile["access_key"]) if profile["access_key"] else None
    if "secret_key" in profile:
        S3_SECRET_KEY = str(profile["secret_key"]) if profile["secret_key"] else None
    if "session_token" in profile:
        S3_SESSION_TOKEN = str(profile["session_token"]) if profile["session_token"] else None
    if "workers" in profile:
        WORKERS = _positive_int("workers", profile["workers"])
    if "max_attempts" in profile:
        SDK_MAX_ATTEMPTS = _positive_int("max_attempts", profile["max_attempts"])
    if "metadata_key" in profile:
        key = str(profile["metadata_key"]).strip().lower()
        if not key:
            raise ConfigurationError("metadata_key must not be empty")
        DIGEST_METADATA_KEY = key


def _positive_int(name: str, value) -> int:
    try:
        n = int(value)
    except (TypeError, ValueError):
        raise ConfigurationError(f"{name} must be an integer, got {value!r}")
    if n < 1:
        raise ConfigurationError(f"{name} must be at least 1, got {n}")
    return n


def load_settings(profile_name: str = "default", start: Optional[Path] = None) -> Optional[Path]:
    """
    Apply the global config, then the nearest project config on top.
    Returns the project config path used, or None when there is none.
    """
    global_cfg = load_global_config()
    if global_cfg:
        apply_profile(get_profile(global_cfg, profile_name))
    path = find_project_config(start)
    if path is not None:
        apply_profile(get_profile(load_config_file(path), profile_name))
    return path
