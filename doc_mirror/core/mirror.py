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
Mirror synchronizer: download a target's selected files into local storage.

A fixed number of asyncio worker tasks drain a shared queue of selected
files. ``Queue.get_nowait`` is the only claim operation, so no two workers
ever take the same file. Each worker owns the destination file it writes;
shared parent directories are created with ``exist_ok``.
"""

from __future__ import annotations

import asyncio
import logging
import shutil
from pathlib import Path
from urllib.parse import quote

from ..config.config import Config
from .exceptions import FetchError
from .fetcher import RetryingFetcher
from .models import FlaggedFile, SelectedFile, SyncResult, SyncTarget
from .threat_scanner import ThreatScanner

logger = logging.getLogger(__name__)


def reset_directory(path: Path) -> None:
    """Remove *path* recursively (if present) and recreate it empty."""
    if path.exists():
        shutil.rmtree(path)
    path.mkdir(parents=True, exist_ok=True)


def write_document(path: Path, content: str) -> None:
    """Write *content* verbatim, creating parent directories on demand."""
    path.parent.mkdir(parents=True, exist_ok=True)
    with open(path, "w", encoding="utf-8", newline="") as fh:
        fh.write(content)


class MirrorSynchronizer:
    """Downloads, scans and writes one target's files through a worker pool."""

    def __init__(self, fetcher: RetryingFetcher, scanner: ThreatScanner, config: Config):
        self.fetcher = fetcher
        self.scanner = scanner
        self.config = config

    def raw_url(self, selected: SelectedFile) -> str:
        target = selected.target
        base = self.config.raw_base_url.rstrip("/")
        return f"{base}/{target.owner}/{target.repo}/{target.branch}/{quote(selected.path)}"

    async def sync(self, target: SyncTarget, files: list[SelectedFile]) -> SyncResult:
        """
        Replace the local mirror of *target* with *files*.

        The destination directory is wiped and recreated first. Per-file
        failures are recorded in ``SyncResult.errors`` and never abort the
        pool; only failures to reset the destination directory propagate.

        Args:
            target: Target being mirrored
            files: Files selected by the tree resolver

        Returns:
            SyncResult with counts, per-file errors and flagged files
        """
        result = SyncResult(target_name=target.name, attempted=len(files))

        reset_directory(target.dest_path)

        if not files:
            logger.info("No files found for %s", target.name)
            return result

        queue: asyncio.Queue[SelectedFile] = asyncio.Queue()
        for selected in files:
            queue.put_nowait(selected)

        width = min(self.config.concurrency, len(files))
        workers = [asyncio.create_task(self._worker(queue, result)) for _ in range(width)]
        try:
            await asyncio.gather(*workers)
        finally:
            for worker in workers:
                worker.cancel()

        logger.info("%s: %d/%d files", target.name, result.succeeded, result.attempted)
        if result.errors:
            logger.warning("%s: %d files failed:\n    %s", target.name, len(result.errors), "\n    ".join(result.errors))

        return result

    async def _worker(self, queue: asyncio.Queue[SelectedFile], result: SyncResult) -> None:
        while True:
            try:
                selected = queue.get_nowait()
            except asyncio.QueueEmpty:
                return
            await self._mirror_file(selected, result)

    async def _mirror_file(self, selected: SelectedFile, result: SyncResult) -> None:
        try:
            content = await self.fetcher.fetch_text(
                self.raw_url(selected),
                timeout=self.config.file_timeout_seconds,
                max_retries=self.config.file_max_retries,
            )

            # Scan before writing; flagged files are still imported.
            findings = self.scanner.scan(content)
            if findings:
                result.flagged.append(FlaggedFile(file=selected.identifier, findings=findings))

            write_document(selected.destination, content)
        except (FetchError, OSError) as e:
            result.errors.append(f"{selected.relative_path}: {e}")
            logger.warning("%s: failed to mirror %s: %s", selected.target.name, selected.relative_path, e)
        else:
            result.succeeded += 1

        processed = result.succeeded + len(result.errors)
        if processed % self.config.progress_interval == 0 and processed < result.attempted:
            logger.info("%s: %d/%d files processed", selected.target.name, processed, result.attempted)
