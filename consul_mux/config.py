"""Client configuration, with defaults matching a local Consul agent."""

from __future__ import annotations

import os
from dataclasses import dataclass


@dataclass
class ClientConfig:
    scheme: str = "http"
    address: str = "127.0.0.1:8500"
    bound: int = 100
    timeout: float = 30.0

    @classmethod
    def from_env(cls) -> ClientConfig:
        """Build a config from CONSUL_* environment variables.

        Unset variables fall back to the dataclass defaults. Call
        ``load_dotenv()`` first to pick up a .env file.
        """
        defaults = cls()
        return cls(
            scheme=os.environ.get("CONSUL_SCHEME", defaults.scheme),
            address=os.environ.get("CONSUL_HTTP_ADDR", defaults.address),
            bound=int(os.environ.get("CONSUL_BOUND", str(defaults.bound))),
            timeout=float(os.environ.get("CONSUL_TIMEOUT", str(defaults.timeout))),
        )
