"""Logging setup for entry points.

Reads a dictConfig JSON file when one is available, otherwise falls back
to a plain console format. Library modules only ever create loggers; this
is for scripts and applications that embed the client.
"""

from __future__ import annotations

import json
import logging
import logging.config
import os

_PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))
DEFAULT_FORMAT = "%(asctime)s [%(name)s] %(levelname)s: %(message)s"


def log_init(log_config_path: str | None = None, verbose: bool = False) -> None:
    """Configure logging for a consul_mux process.

    Config file lookup: ``log_config_path``, then ``LOG_CONFIG``, then
    ``logging.json`` in the project root. An explicit path must exist;
    otherwise a missing file falls back to ``basicConfig``. ``verbose``
    lowers the consul_mux loggers to DEBUG so dispatch and queueing
    decisions show up.
    """
    path = log_config_path or os.environ.get(
        "LOG_CONFIG", os.path.join(_PROJECT_ROOT, "logging.json")
    )
    if log_config_path or os.path.exists(path):
        with open(path) as f:
            logging.config.dictConfig(json.load(f))
    else:
        logging.basicConfig(level=logging.INFO, format=DEFAULT_FORMAT)
        logging.getLogger("httpx").setLevel(logging.WARNING)

    if verbose:
        logging.getLogger("consul_mux").setLevel(logging.DEBUG)
