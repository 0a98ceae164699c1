# Copyright 2026 Cisco Systems, Inc. and its affiliates
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
Pytest configuration and shared fixtures.

This file is automatically loaded by pytest before running tests.
All fixtures defined here are available to every test module without
explicit imports.
"""

from __future__ import annotations

from collections.abc import Callable
from pathlib import Path

import httpx
import pytest

from doc_mirror.config.config import Config
from doc_mirror.core.models import SyncTarget
from doc_mirror.core.scan_policy import ScanPolicy

# ---------------------------------------------------------------------------
# Environment
# ---------------------------------------------------------------------------

_ENV_VARS = (
    "DOC_MIRROR_ROOT",
    "DOC_MIRROR_REPORT_PATH",
    "DOC_MIRROR_CONCURRENCY",
    "DOC_MIRROR_TREE_TIMEOUT",
    "DOC_MIRROR_FILE_TIMEOUT",
    "DOC_MIRROR_TREE_RETRIES",
    "DOC_MIRROR_FILE_RETRIES",
    "DOC_MIRROR_RETRY_BASE_DELAY",
    "DOC_MIRROR_INDEXER",
    "DOC_MIRROR_SKIP_INDEX",
    "GITHUB_TOKEN",
)


@pytest.fixture(autouse=True)
def _clean_env(monkeypatch):
    """Keep the developer's shell configuration out of every test."""
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)


# ---------------------------------------------------------------------------
# Core fixtures
# ---------------------------------------------------------------------------


@pytest.fixture
def default_policy() -> ScanPolicy:
    return ScanPolicy.default()


@pytest.fixture
def mirror_root(tmp_path: Path) -> Path:
    return tmp_path / "docs"


@pytest.fixture
def config(mirror_root: Path) -> Config:
    """Config pointing at a temporary mirror with fast, small settings."""
    return Config(
        mirror_root=mirror_root,
        concurrency=4,
        tree_max_retries=2,
        file_max_retries=2,
        retry_base_delay_seconds=1.0,
        run_indexer=False,
        api_base_url="https://api.test",
        raw_base_url="https://raw.test",
    )


@pytest.fixture
def make_target(mirror_root: Path) -> Callable[..., SyncTarget]:
    """Factory fixture for sync targets under the temporary mirror root."""

    def _factory(
        name: str = "docs",
        owner: str = "acme",
        repo: str = "widgets",
        branch: str = "main",
        source_path: str = "docs",
        dest: str | None = None,
    ) -> SyncTarget:
        return SyncTarget(
            name=name,
            owner=owner,
            repo=repo,
            branch=branch,
            source_path=source_path,
            dest_path=(mirror_root / (dest if dest is not None else name)).resolve(),
        )

    return _factory


# ---------------------------------------------------------------------------
# HTTP fakes
# ---------------------------------------------------------------------------


class RecordingSleep:
    """Stand-in for ``asyncio.sleep`` that records delays and returns at once."""

    def __init__(self):
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


@pytest.fixture
def sleep() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def mock_client() -> Callable[[Callable[[httpx.Request], httpx.Response]], httpx.AsyncClient]:
    """Build an ``httpx.AsyncClient`` backed by a request handler."""

    def _factory(handler: Callable[[httpx.Request], httpx.Response]) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(handler))

    return _factory


@pytest.fixture
def tree_payload() -> Callable[..., dict]:
    """Build a git-trees API payload from ``{path: git_type}``."""

    def _factory(paths: dict[str, str], truncated: bool = False) -> dict:
        return {
            "sha": "deadbeef",
            "tree": [{"path": path, "type": git_type, "mode": "100644"} for path, git_type in paths.items()],
            "truncated": truncated,
        }

    return _factory
