"""
Configuration management for the Searchlab search widget.

Loads configuration from an options.json file and provides typed defaults.
The only setting most deployments touch is search_api, the location of the
yacysearch.json endpoint.
"""

import json
import os
from dataclasses import dataclass
from pathlib import Path

from logging_util import log

OPTIONS_PATH = os.getenv("SEARCHLAB_OPTIONS", "/data/options.json")

TEMPLATE_DIR = Path(__file__).parent / "web" / "templates"
DEFAULT_PAGE_PATH = str(TEMPLATE_DIR / "search.html")


@dataclass
class Config:
    """All configuration options with sensible defaults."""

    # --- Search API ---
    search_api: str = "http://searchlab.eu/api/yacysearch.json"
    request_timeout_sec: float = 15
    percent_encode_query: bool = False
    verify_ssl: bool = True

    # --- Page ---
    page_path: str = DEFAULT_PAGE_PATH
    output_path: str = "/data/searchlab.html"


def load_config(path: str = None) -> Config:
    """Load configuration from options.json, falling back to defaults."""
    path = path or OPTIONS_PATH
    try:
        with open(path, "r") as f:
            raw = json.load(f)
        log("debug", f"Loaded options: {list(raw.keys())}")

        cfg = Config()
        for k, v in raw.items():
            if hasattr(cfg, k):
                setattr(cfg, k, v)
            else:
                log("debug", f"Ignoring unknown option '{k}'")
        return cfg
    except Exception as e:
        log("warning", f"Could not load config: {e}, using defaults")
        return Config()
