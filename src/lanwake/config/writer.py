"""Atomic write-back of the settings file and the host list."""

import json
import os
from pathlib import Path
from typing import Any, Callable, TextIO

import yaml

from lanwake.core.hosts import HostRecord


def _atomic_write(path: Path, dump: Callable[[TextIO], None]) -> None:
    tmp = path.with_name(f"{path.name}.tmp.{os.getpid()}")
    try:
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(tmp, "w", encoding="utf-8") as f:
            dump(f)
        os.replace(tmp, path)
    except Exception:
        # Clean up temp file on failure
        if tmp.exists():
            tmp.unlink(missing_ok=True)
        raise


def write_config(path: Path, config: dict[str, Any]) -> None:
    """
    Atomically write a settings dict to a YAML file.

    Args:
        path: Destination config.yaml path.
        config: Full config dict (settings + auth).
    """
    _atomic_write(
        path,
        lambda f: yaml.dump(
            config,
            f,
            default_flow_style=False,
            allow_unicode=True,
            sort_keys=False,
        ),
    )


def write_hosts(path: Path, hosts: list[HostRecord]) -> None:
    """
    Atomically replace the host list file.

    Uses a temp-file + os.replace so a crash mid-write never leaves a
    half-written file.

    Args:
        path: Destination hosts.json path.
        hosts: Complete, ordered host list.
    """
    entries = [h.to_dict() for h in hosts]
    _atomic_write(
        path,
        lambda f: json.dump(entries, f, indent=4, ensure_ascii=False),
    )
