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
Plain-text threat report written next to the mirror.

The artifact always reflects exactly one run: it is rewritten when the run
flagged files and deleted when it did not.
"""

from __future__ import annotations

import logging
from collections.abc import Iterable
from datetime import datetime, timezone
from pathlib import Path

from ..models import FlaggedFile

logger = logging.getLogger(__name__)


class ThreatReporter:
    """Writes (or removes) the run's security-scan log."""

    def __init__(self, report_path: Path):
        """
        Initialize reporter.

        Args:
            report_path: Location of the report artifact
        """
        self.report_path = Path(report_path)

    def render(self, flagged: Iterable[FlaggedFile], now: datetime | None = None) -> str:
        """
        Render flagged files as text.

        Files are sorted by identifier; findings keep their discovery order.
        """
        timestamp = (now or datetime.now(timezone.utc)).isoformat()
        lines = [f"Security Scan - {timestamp}", "=" * 50, ""]

        for entry in sorted(flagged, key=lambda f: f.file):
            lines.append(f"FILE: {entry.file}")
            for finding in entry.findings:
                lines.append(f"  [{finding.category.value}] {finding.match}")
            lines.append("")

        return "\n".join(lines)

    def report(self, flagged: list[FlaggedFile], now: datetime | None = None) -> Path | None:
        """
        Persist the report for one run.

        Args:
            flagged: Every flagged file collected during the run
            now: Timestamp for the header (defaults to current UTC time)

        Returns:
            The report path when written, None when no threats were found
        """
        if not flagged:
            if self.report_path.exists():
                self.report_path.unlink()
                logger.info("No threats found; removed stale report %s", self.report_path)
            return None

        self.report_path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.report_path, "w", encoding="utf-8") as fh:
            fh.write(self.render(flagged, now))

        total = sum(len(f.findings) for f in flagged)
        logger.warning("%d threat indicators in %d files logged to %s", total, len(flagged), self.report_path)
        return self.report_path
