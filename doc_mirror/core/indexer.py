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
Downstream indexer invocation.

After mirroring, the mirror root is registered as a ``qmd`` collection and
embeddings are rebuilt. Any failure here is fatal for the run.
"""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path

from .exceptions import IndexerError

logger = logging.getLogger(__name__)


class QmdIndexer:
    """Runs ``qmd collection add`` followed by ``qmd embed``."""

    def __init__(self, command: str = "qmd", collection: str = "openclaw-docs", mask: str = "**/*.{md,mdx}"):
        self.command = command
        self.collection = collection
        self.mask = mask

    def commands(self, root: Path) -> list[list[str]]:
        """Argument vectors run, in order, for *root*."""
        return [
            [self.command, "collection", "add", str(root), "--name", self.collection, "--mask", self.mask],
            [self.command, "embed", "-f"],
        ]

    async def rebuild(self, root: Path) -> None:
        """
        Register *root* with the indexer and rebuild embeddings.

        Raises:
            IndexerError: the command is missing or exits non-zero
        """
        for argv in self.commands(root):
            await self._run(argv)

    async def _run(self, argv: list[str]) -> None:
        logger.info("Running %s", " ".join(argv))
        try:
            process = await asyncio.create_subprocess_exec(*argv)
        except OSError as e:
            raise IndexerError(f"Failed to start {argv[0]}: {e}", command=argv[0]) from e

        returncode = await process.wait()
        if returncode != 0:
            raise IndexerError(
                f"{argv[0]} {argv[1]} exited with code {returncode}",
                command=" ".join(argv),
                returncode=returncode,
            )
