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
Data models for mirrored document trees and threat findings.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from pathlib import Path, PurePosixPath
from typing import Any


class ThreatCategory(str, Enum):
    """Categories of supply-chain threats detected in document text."""

    BASE64_EXEC = "base64-exec"
    PIPE_TO_SHELL = "pipe-to-shell"
    CMD_SUBSTITUTION = "cmd-substitution"
    RAW_IP_URL = "raw-ip-url"
    EXECUTABLE_URL = "executable-url"
    PROMPT_INJECTION = "prompt-injection"


class EntryKind(str, Enum):
    """Kind tag of a remote manifest entry."""

    FILE = "file"
    DIRECTORY = "directory"
    OTHER = "other"

    @classmethod
    def from_git_type(cls, git_type: str | None) -> "EntryKind":
        """Map a git tree ``type`` (blob / tree / commit) to an entry kind."""
        if git_type == "blob":
            return cls.FILE
        if git_type == "tree":
            return cls.DIRECTORY
        return cls.OTHER


@dataclass(frozen=True)
class SyncTarget:
    """One remote document tree to mirror into local storage."""

    name: str
    owner: str
    repo: str
    branch: str
    source_path: str
    dest_path: Path

    @property
    def slug(self) -> str:
        """``owner/repo`` identifier used in URLs and messages."""
        return f"{self.owner}/{self.repo}"

    @property
    def source_prefix(self) -> str:
        """Manifest path prefix (source subtree plus separator)."""
        return f"{self.source_path.strip('/')}/"

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "owner": self.owner,
            "repo": self.repo,
            "branch": self.branch,
            "source_path": self.source_path,
            "dest_path": str(self.dest_path),
        }


@dataclass(frozen=True)
class TreeEntry:
    """A single node of a remote manifest."""

    path: str
    kind: EntryKind

    @property
    def extension(self) -> str:
        return PurePosixPath(self.path).suffix


@dataclass(frozen=True)
class SelectedFile:
    """A manifest file selected for mirroring.

    ``relative_path`` is the manifest path with the target's source-subtree
    prefix stripped; it is joined onto ``SyncTarget.dest_path`` on write.
    """

    path: str
    relative_path: str
    target: SyncTarget

    @property
    def destination(self) -> Path:
        return self.target.dest_path.joinpath(*PurePosixPath(self.relative_path).parts)

    @property
    def identifier(self) -> str:
        """Logical identifier used in threat reports (``target/relative``)."""
        return f"{self.target.name}/{self.relative_path}"


@dataclass(frozen=True)
class Finding:
    """A threat indicator matched in a document."""

    category: ThreatCategory
    match: str  # verbatim excerpt of the scanned text

    def to_dict(self) -> dict[str, Any]:
        return {"type": self.category.value, "match": self.match}


@dataclass
class FlaggedFile:
    """A mirrored document together with its non-empty findings."""

    file: str
    findings: list[Finding] = field(default_factory=list)

    def to_dict(self) -> dict[str, Any]:
        return {"file": self.file, "findings": [f.to_dict() for f in self.findings]}


@dataclass
class FetchOutcome:
    """Result of one retrying fetch.

    On success ``body`` holds the response text. On failure ``error`` holds
    the last error message and ``status`` the last HTTP status observed
    (``None`` when the last attempt never produced a response).
    """

    url: str
    body: str | None = None
    error: str | None = None
    status: int | None = None
    attempts: int = 0

    @property
    def ok(self) -> bool:
        return self.error is None and self.body is not None

    @property
    def rate_limited(self) -> bool:
        return self.status in (403, 429)


@dataclass
class SyncResult:
    """Outcome of mirroring one target's selected files."""

    target_name: str
    attempted: int = 0
    succeeded: int = 0
    errors: list[str] = field(default_factory=list)
    flagged: list[FlaggedFile] = field(default_factory=list)

    @property
    def failed(self) -> int:
        return self.attempted - self.succeeded

    def to_dict(self) -> dict[str, Any]:
        return {
            "target": self.target_name,
            "attempted": self.attempted,
            "succeeded": self.succeeded,
            "errors": list(self.errors),
            "flagged": [f.to_dict() for f in self.flagged],
        }


class TargetStatus(str, Enum):
    """Tagged per-target outcome used by the coordinator."""

    SYNCED = "synced"
    UNREACHABLE = "unreachable"  # manifest fetch failed; recoverable skip
    FAILED = "failed"  # truncated/invalid manifest or local I/O failure


@dataclass
class TargetOutcome:
    """What happened to one target during a run."""

    target_name: str
    status: TargetStatus
    result: SyncResult | None = None
    error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "target": self.target_name,
            "status": self.status.value,
            "result": self.result.to_dict() if self.result else None,
            "error": self.error,
        }


@dataclass
class RunSummary:
    """Aggregated outcome of one sync run across all targets."""

    outcomes: list[TargetOutcome] = field(default_factory=list)
    report_path: Path | None = None
    timestamp: datetime = field(default_factory=datetime.now)

    @property
    def flagged(self) -> list[FlaggedFile]:
        """Every flagged file collected across targets."""
        return [f for o in self.outcomes if o.result for f in o.result.flagged]

    @property
    def all_synced(self) -> bool:
        return all(o.status == TargetStatus.SYNCED for o in self.outcomes)

    def get_outcomes_by_status(self, status: TargetStatus) -> list[TargetOutcome]:
        return [o for o in self.outcomes if o.status == status]

    def to_dict(self) -> dict[str, Any]:
        return {
            "timestamp": self.timestamp.isoformat(),
            "report_path": str(self.report_path) if self.report_path else None,
            "targets": [o.to_dict() for o in self.outcomes],
            "flagged_count": len(self.flagged),
        }
