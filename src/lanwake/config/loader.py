"""YAML settings loader and JSON host list loader/validator."""

import json
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping, Optional

import yaml

from lanwake.core.hosts import HostRecord
from lanwake.core.magic import DEFAULT_WOL_PORT
from lanwake.core.probe import DEFAULT_TIMEOUT

_MAC_RE = re.compile(r"^(([0-9A-Fa-f]{2}[:\-]){5}[0-9A-Fa-f]{2}|[0-9A-Fa-f]{12})$")

# Environment variable -> rate_limits key
_RATE_LIMIT_ENV = {
    "WOL_RATE_LIMIT_CONFIG_SET": "config_set",
    "WOL_RATE_LIMIT_HOST_CHECK": "host_check",
    "WOL_RATE_LIMIT_HOST_WAKEUP": "host_wakeup",
    "WOL_RATE_LIMIT_WINDOW_SECS": "window_secs",
}


class ConfigError(Exception):
    """Raised for invalid or missing configuration."""


class HostFileError(ConfigError):
    """Raised when the host list file cannot be parsed."""


@dataclass
class RateLimits:
    config_set: int = 10
    host_check: int = 30
    host_wakeup: int = 5
    window_secs: int = 60


@dataclass
class AppSettings:
    """Runtime settings resolved from the YAML file and the environment."""

    hosts_file: Path
    default_port: int = DEFAULT_WOL_PORT
    probe_timeout: float = DEFAULT_TIMEOUT
    rate_limits: RateLimits = field(default_factory=RateLimits)
    username: str = ""
    password: str = ""
    session_secret: str = ""

    @property
    def basic_auth_enabled(self) -> bool:
        return bool(self.username and self.password)


def load_config(path: Path) -> Optional[dict[str, Any]]:
    """
    Load settings from a YAML file.

    Args:
        path: Path to the YAML config file

    Returns:
        Parsed configuration dictionary, or None if file is empty

    Raises:
        FileNotFoundError: If config file doesn't exist
        yaml.YAMLError: If YAML is invalid
    """
    with open(path) as f:
        result: Optional[dict[str, Any]] = yaml.safe_load(f)
        return result


def validate_settings(config: dict[str, Any]) -> list[str]:
    """
    Validate a loaded settings dictionary.

    Returns:
        List of validation error messages (empty list = valid)
    """
    if not isinstance(config, dict):
        return ["Config root must be a YAML mapping"]

    errors: list[str] = []
    settings = config.get("settings") or {}
    if not isinstance(settings, dict):
        return ["'settings' must be a mapping"]

    port = settings.get("default_port", DEFAULT_WOL_PORT)
    if not isinstance(port, int) or isinstance(port, bool) or not 1 <= port <= 65535:
        errors.append(f"settings.default_port: invalid port '{port}'")

    timeout = settings.get("probe_timeout", DEFAULT_TIMEOUT)
    if not isinstance(timeout, (int, float)) or isinstance(timeout, bool) or timeout <= 0:
        errors.append(f"settings.probe_timeout: must be a positive number, got '{timeout}'")

    limits = settings.get("rate_limits") or {}
    if not isinstance(limits, dict):
        errors.append("settings.rate_limits: must be a mapping")
    else:
        for key, value in limits.items():
            if key not in RateLimits.__dataclass_fields__:
                errors.append(f"settings.rate_limits: unknown key '{key}'")
            elif not isinstance(value, int) or isinstance(value, bool) or value < 1:
                errors.append(f"settings.rate_limits.{key}: must be a positive integer")

    auth = config.get("auth") or {}
    if not isinstance(auth, dict):
        errors.append("'auth' must be a mapping")

    return errors


def _env_int(environ: Mapping[str, str], name: str) -> Optional[int]:
    value = environ.get(name, "")
    if not value:
        return None
    try:
        parsed = int(value)
    except ValueError:
        raise ConfigError(f"{name} must be an integer, got '{value}'") from None
    return parsed if parsed > 0 else None


def settings_from_config(
    config: Optional[dict[str, Any]],
    config_path: Path,
    environ: Optional[Mapping[str, str]] = None,
) -> AppSettings:
    """
    Build AppSettings from a validated settings dict plus environment overrides.

    Args:
        config: Parsed settings dictionary (None when no settings file exists)
        config_path: Location of the settings file; relative hosts_file paths
            are resolved against its directory
        environ: Environment mapping (defaults to os.environ)

    Returns:
        AppSettings instance
    """
    if environ is None:
        environ = os.environ
    config = config or {}
    settings = config.get("settings") or {}
    auth = config.get("auth") or {}

    hosts_file = Path(str(settings.get("hosts_file", "hosts.json"))).expanduser()
    if not hosts_file.is_absolute():
        hosts_file = config_path.parent / hosts_file

    limits = RateLimits(**(settings.get("rate_limits") or {}))
    for env_name, key in _RATE_LIMIT_ENV.items():
        override = _env_int(environ, env_name)
        if override is not None:
            setattr(limits, key, override)

    return AppSettings(
        hosts_file=hosts_file,
        default_port=int(settings.get("default_port", DEFAULT_WOL_PORT)),
        probe_timeout=float(settings.get("probe_timeout", DEFAULT_TIMEOUT)),
        rate_limits=limits,
        username=environ.get("WOL_USERNAME") or str(auth.get("username") or ""),
        password=environ.get("WOL_PASSWORD") or str(auth.get("password") or ""),
        session_secret=str(auth.get("session_secret") or ""),
    )


def validate_hosts(entries: Any) -> list[str]:
    """
    Validate a raw host list as submitted by a client or read from disk.

    Returns:
        List of validation error messages (empty list = valid)
    """
    if not isinstance(entries, list):
        return ["Invalid configuration format: expected an array."]

    errors: list[str] = []
    for i, entry in enumerate(entries):
        prefix = f"hosts[{i}]"
        if not isinstance(entry, dict) or "mac" not in entry or "host" not in entry:
            errors.append(
                f"{prefix}: each item must be an object with at least 'mac' and 'host' fields"
            )
            continue
        if not isinstance(entry["mac"], str) or not isinstance(entry["host"], str):
            errors.append(f"{prefix}: 'mac' and 'host' must be strings")
            continue
        mac = entry["mac"].strip()
        if mac and not _MAC_RE.match(mac):
            errors.append(f"{prefix}: invalid mac '{mac}'")
        errors.extend(_check_range(prefix, "cidr", entry.get("cidr"), 0, 32))
        errors.extend(_check_range(prefix, "port", entry.get("port"), 1, 65535))
    return errors


def _check_range(prefix: str, name: str, value: Any, low: int, high: int) -> list[str]:
    if value is None or (isinstance(value, str) and not value.strip()):
        return []
    message = f"{prefix}: {name} must be an integer between {low} and {high}"
    if isinstance(value, bool):
        return [message]
    try:
        number = int(str(value).strip())
    except ValueError:
        return [message]
    if not low <= number <= high:
        return [message]
    return []


def load_hosts_raw(path: Path) -> list[Any]:
    """
    Read the host list file as raw JSON.

    Returns:
        The decoded JSON array, or an empty list if the file does not exist

    Raises:
        HostFileError: If the file is not valid JSON or not an array
    """
    if not path.exists():
        return []
    try:
        with open(path, encoding="utf-8") as f:
            data = json.load(f)
    except (json.JSONDecodeError, UnicodeDecodeError) as exc:
        raise HostFileError(f"Failed to parse host list {path}: {exc}") from exc
    if data is None:
        return []
    if not isinstance(data, list):
        raise HostFileError(f"Host list {path} must contain a JSON array")
    return data


def load_hosts(path: Path) -> list[HostRecord]:
    """
    Load and validate the host list.

    Raises:
        HostFileError: If the file is unparsable or contains invalid entries
    """
    raw = load_hosts_raw(path)
    errors = validate_hosts(raw)
    if errors:
        raise HostFileError("; ".join(errors))
    return [HostRecord.from_dict(entry) for entry in raw]
