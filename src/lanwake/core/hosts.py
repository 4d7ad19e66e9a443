"""Host list data model."""

from dataclasses import dataclass
from typing import Any, Optional


def _optional_int(value: Any) -> Optional[int]:
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    text = str(value).strip()
    if not text:
        return None
    return int(text)


@dataclass
class HostRecord:
    """A configured host. Position in the list is its identity."""

    mac: str
    host: str
    cidr: Optional[int] = None
    port: Optional[int] = None
    comment: str = ""

    @classmethod
    def from_dict(cls, raw: dict[str, Any]) -> "HostRecord":
        """
        Build a HostRecord from a host list entry.

        Raises:
            ValueError: If cidr or port is present but not an integer
        """
        return cls(
            mac=str(raw["mac"]),
            host=str(raw["host"]),
            cidr=_optional_int(raw.get("cidr")),
            port=_optional_int(raw.get("port")),
            comment=str(raw.get("comment") or ""),
        )

    def to_dict(self) -> dict[str, Any]:
        """Serialize back to the host list format; unset cidr/port are written as ""."""
        return {
            "mac": self.mac,
            "host": self.host,
            "cidr": "" if self.cidr is None else self.cidr,
            "port": "" if self.port is None else self.port,
            "comment": self.comment,
        }
