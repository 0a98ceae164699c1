# Copyright 2026 Cisco Systems, Inc.
#
# Licensed under the Apache License, Version 2.0 (the "License");
# you may not use this file except in compliance with the License.
# You may obtain a copy of the License at
#
#     http://www.apache.org/licenses/LICENSE-2.0
#
# Unless required by applicable law or agreed to in writing, software
# distributed under the License is distributed on an "AS IS" BASIS,
# WITHOUT WARRANTIES OR CONDITIONS OF ANY KIND, either express or implied.
# See the License for the specific language governing permissions and
# limitations under the License.
#
# SPDX-License-Identifier: Apache-2.0

"""
Loading of sync targets from YAML.

A targets file is a mapping with a ``targets`` list (a bare list is also
accepted). Each entry needs ``name``, ``owner``, ``repo`` and
``source_path``; ``branch`` defaults to ``main`` and ``dest_path`` to the
target name. Relative destinations are resolved against the mirror root.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any

import yaml

from ..data import DEFAULT_TARGETS_PATH
from .exceptions import ConfigurationError
from .models import SyncTarget

logger = logging.getLogger(__name__)

_REQUIRED_FIELDS = ("name", "owner", "repo", "source_path")


def load_targets(mirror_root: Path, targets_file: str | Path | None = None) -> list[SyncTarget]:
    """
    Load sync targets.

    Args:
        mirror_root: Root directory that relative ``dest_path`` values hang off
        targets_file: YAML file to read. If None, the built-in defaults are used.

    Returns:
        Targets in file order
    """
    path = Path(targets_file) if targets_file is not None else DEFAULT_TARGETS_PATH
    if not path.exists():
        raise ConfigurationError(f"Targets file not found: {path}")

    try:
        with open(path, encoding="utf-8") as fh:
            raw = yaml.safe_load(fh)
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Failed to parse targets file {path}: {e}") from e

    entries = raw.get("targets") if isinstance(raw, dict) else raw
    if not isinstance(entries, list) or not entries:
        raise ConfigurationError(f"Targets file {path} must contain a non-empty 'targets' list")

    targets = [parse_target(entry, mirror_root, index) for index, entry in enumerate(entries)]

    seen: set[str] = set()
    for target in targets:
        if target.name in seen:
            raise ConfigurationError(f"Duplicate target name '{target.name}' in {path}")
        seen.add(target.name)

    logger.debug("Loaded %d targets from %s", len(targets), path)
    return targets


def parse_target(entry: Any, mirror_root: Path, index: int = 0) -> SyncTarget:
    """Build a :class:`SyncTarget` from one YAML mapping."""
    if not isinstance(entry, dict):
        raise ConfigurationError(f"Target #{index + 1} must be a mapping, got {type(entry).__name__}")

    missing = [key for key in _REQUIRED_FIELDS if not entry.get(key)]
    if missing:
        raise ConfigurationError(f"Target #{index + 1} is missing required fields: {', '.join(missing)}")

    source_path = str(entry["source_path"]).strip("/")
    if not source_path:
        raise ConfigurationError(f"Target '{entry['name']}' has an empty source_path")

    dest = Path(str(entry.get("dest_path", entry["name"]))).expanduser()
    if not dest.is_absolute():
        dest = Path(mirror_root).expanduser() / dest

    return SyncTarget(
        name=str(entry["name"]),
        owner=str(entry["owner"]),
        repo=str(entry["repo"]),
        branch=str(entry.get("branch", "main")),
        source_path=source_path,
        dest_path=Path(dest).resolve(),
    )
