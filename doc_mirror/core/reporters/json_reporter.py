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
JSON format reporter for threat findings and sync summaries.
"""

import json
from typing import Any

from ..models import FlaggedFile, RunSummary


class JSONReporter:
    """Generates JSON format reports."""

    def __init__(self, pretty: bool = True):
        """
        Initialize JSON reporter.

        Args:
            pretty: If True, pretty-print JSON with indentation
        """
        self.pretty = pretty

    def generate_report(self, data: RunSummary | list[FlaggedFile], scanned_files: int | None = None) -> str:
        """
        Generate JSON report.

        Args:
            data: RunSummary from a sync run, or flagged files from a local scan
            scanned_files: Number of documents scanned (local scans only)

        Returns:
            JSON string
        """
        payload: dict[str, Any]
        if isinstance(data, RunSummary):
            payload = data.to_dict()
            payload["flagged"] = [f.to_dict() for f in sorted(data.flagged, key=lambda f: f.file)]
        else:
            flagged = sorted(data, key=lambda f: f.file)
            payload = {
                "scanned_files": scanned_files,
                "flagged_count": len(flagged),
                "findings_count": sum(len(f.findings) for f in flagged),
                "flagged": [f.to_dict() for f in flagged],
            }

        if self.pretty:
            return json.dumps(payload, indent=2)
        return json.dumps(payload)
