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
Sync coordinator: mirror every configured target, then report and index.

Targets are processed one after another; concurrency lives only inside a
target's file pool. A failing target is tagged and skipped so the others
still mirror. The threat report is written once, over all targets.
"""

from __future__ import annotations

import logging
from datetime import datetime, timezone

import httpx

from ..config.config import Config
from .exceptions import FetchError, ManifestError
from .fetcher import RetryingFetcher, SleepFunc
from .indexer import QmdIndexer
from .mirror import MirrorSynchronizer
from .models import RunSummary, SyncTarget, TargetOutcome, TargetStatus
from .reporters.text_reporter import ThreatReporter
from .scan_policy import ScanPolicy
from .threat_scanner import ThreatScanner
from .tree import TreeResolver

logger = logging.getLogger(__name__)


class SyncCoordinator:
    """Runs resolve + sync per target and aggregates the results."""

    def __init__(
        self,
        config: Config,
        targets: list[SyncTarget],
        resolver: TreeResolver,
        synchronizer: MirrorSynchronizer,
        reporter: ThreatReporter,
        indexer: QmdIndexer | None = None,
    ):
        self.config = config
        self.targets = targets
        self.resolver = resolver
        self.synchronizer = synchronizer
        self.reporter = reporter
        self.indexer = indexer

    async def run(self) -> RunSummary:
        """
        Mirror all targets.

        Returns:
            RunSummary with one outcome per target, in configuration order

        Raises:
            IndexerError: the downstream indexer failed
            OSError: the mirror root or report could not be written
        """
        summary = RunSummary(timestamp=datetime.now(timezone.utc))

        root = self.config.mirror_root
        root.mkdir(parents=True, exist_ok=True)
        logger.info("Syncing docs to %s", root)

        for target in self.targets:
            outcome = await self._run_target(target)
            summary.outcomes.append(outcome)

        summary.report_path = self.reporter.report(summary.flagged, now=summary.timestamp)

        if self.indexer is not None:
            await self.indexer.rebuild(root)

        return summary

    async def _run_target(self, target: SyncTarget) -> TargetOutcome:
        logger.info("Syncing %s (%s@%s:%s)", target.name, target.slug, target.branch, target.source_path)
        try:
            files = await self.resolver.resolve(target)
            result = await self.synchronizer.sync(target, files)
        except FetchError as e:
            logger.warning("Skipping %s: %s", target.name, e)
            return TargetOutcome(target_name=target.name, status=TargetStatus.UNREACHABLE, error=str(e))
        except (ManifestError, OSError) as e:
            logger.error("Failed to sync %s: %s", target.name, e)
            return TargetOutcome(target_name=target.name, status=TargetStatus.FAILED, error=str(e))

        return TargetOutcome(target_name=target.name, status=TargetStatus.SYNCED, result=result)


async def run_sync(
    config: Config,
    targets: list[SyncTarget],
    policy: ScanPolicy | None = None,
    sleep: SleepFunc | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> RunSummary:
    """
    Build the collaborators for one run and execute it.

    Args:
        config: Run configuration
        targets: Targets to mirror, in order
        policy: Threat scan policy (defaults to the built-in policy)
        sleep: Backoff sleep override (tests)
        transport: httpx transport override (tests)

    Returns:
        RunSummary of the run
    """
    async with httpx.AsyncClient(
        headers={"User-Agent": config.user_agent},
        follow_redirects=True,
        transport=transport,
    ) as client:
        fetcher = RetryingFetcher(client, base_delay=config.retry_base_delay_seconds, sleep=sleep)
        indexer = None
        if config.run_indexer:
            indexer = QmdIndexer(config.indexer_command, config.collection_name, config.index_mask)

        coordinator = SyncCoordinator(
            config=config,
            targets=targets,
            resolver=TreeResolver(fetcher, config),
            synchronizer=MirrorSynchronizer(fetcher, ThreatScanner(policy), config),
            reporter=ThreatReporter(config.report_path),
            indexer=indexer,
        )
        return await coordinator.run()
