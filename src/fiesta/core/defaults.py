# Copyright (C) 2026 Bernardo Gómez Bey
# SPDX-License-Identifier: AGPL-3.0-or-later

from __future__ import annotations

import copy
import os
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict

import yaml

from fiesta.infra.storage import SETTINGS_ID

DEFAULTS_PATH = Path(
    os.getenv("FIESTA_SETTINGS_DEFAULTS", str(Path(__file__).resolve().parent / "settings_defaults.yml"))
).resolve()


@lru_cache(maxsize=None)
def _load_defaults(path: Path) -> Dict[str, Any]:
    raw = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    if not isinstance(raw, dict):
        raise ValueError(f"Settings defaults must be a mapping: {path}")
    return raw


def default_settings(*, path: Path = DEFAULTS_PATH) -> Dict[str, Any]:
    """Fresh copy of the full baseline settings row (id included)."""
    row = copy.deepcopy(_load_defaults(path))
    row["id"] = SETTINGS_ID
    return row
