"""lanwake: Wake-on-LAN host list and reachability service."""

__version__ = "0.1.0"
