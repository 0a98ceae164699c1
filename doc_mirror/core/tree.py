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
Tree resolver: fetch a recursive manifest and select the files to mirror.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from pathlib import PurePosixPath
from typing import Any

from ..config.config import Config
from ..config.constants import DocMirrorConstants
from .exceptions import ManifestError, TruncatedTreeError
from .fetcher import RetryingFetcher
from .models import EntryKind, SelectedFile, SyncTarget, TreeEntry

logger = logging.getLogger(__name__)


def parse_entries(payload: Any) -> tuple[list[TreeEntry], bool]:
    """
    Parse a git-trees API payload.

    Returns:
        Tuple of (entries in manifest order, truncated flag)
    """
    if not isinstance(payload, dict) or not isinstance(payload.get("tree"), list):
        raise ManifestError("Manifest response has no 'tree' list")

    entries = []
    for raw in payload["tree"]:
        if not isinstance(raw, dict) or not isinstance(raw.get("path"), str):
            continue
        entries.append(TreeEntry(path=raw["path"], kind=EntryKind.from_git_type(raw.get("type"))))
    return entries, bool(payload.get("truncated", False))


def _is_clean_relative(relative: str) -> bool:
    # Must stay under the destination: no empty, ".", ".." or absolute components.
    if not relative or relative.startswith("/"):
        return False
    path = PurePosixPath(relative)
    return ".." not in path.parts and path.as_posix() == relative


def select_files(
    target: SyncTarget, entries: Iterable[TreeEntry], allowed_extensions: Iterable[str]
) -> list[SelectedFile]:
    """Keep plain files under the target's source subtree with an allowed extension.

    Manifest order is preserved.
    """
    allowed = set(allowed_extensions)
    prefix = target.source_prefix
    selected = []
    for entry in entries:
        if entry.kind != EntryKind.FILE:
            continue
        if not entry.path.startswith(prefix):
            continue
        if entry.extension not in allowed:
            continue
        relative = entry.path[len(prefix) :]
        if not _is_clean_relative(relative):
            logger.warning("%s: skipping manifest path outside the source tree: %s", target.name, entry.path)
            continue
        selected.append(SelectedFile(path=entry.path, relative_path=relative, target=target))
    return selected


class TreeResolver:
    """Resolves a target into the list of files to mirror."""

    def __init__(self, fetcher: RetryingFetcher, config: Config):
        self.fetcher = fetcher
        self.config = config

    def tree_url(self, target: SyncTarget) -> str:
        base = self.config.api_base_url.rstrip("/")
        return f"{base}/repos/{target.owner}/{target.repo}/git/trees/{target.branch}?recursive=1"

    def _headers(self) -> dict[str, str]:
        headers = {"Accept": DocMirrorConstants.GITHUB_ACCEPT, "User-Agent": self.config.user_agent}
        if self.config.github_token:
            headers["Authorization"] = f"Bearer {self.config.github_token}"
        return headers

    async def resolve(self, target: SyncTarget) -> list[SelectedFile]:
        """
        Fetch the manifest for *target* and filter it.

        Raises:
            FetchError: the manifest could not be fetched
            TruncatedTreeError: the manifest is incomplete
            ManifestError: the manifest is structurally invalid
        """
        payload = await self.fetcher.fetch_json(
            self.tree_url(target),
            timeout=self.config.tree_timeout_seconds,
            max_retries=self.config.tree_max_retries,
            headers=self._headers(),
        )
        entries, truncated = parse_entries(payload)
        if truncated:
            raise TruncatedTreeError(target.name, target.slug)

        files = select_files(target, entries, self.config.allowed_extensions)
        logger.debug("%s: %d of %d manifest entries selected", target.name, len(files), len(entries))
        return files
