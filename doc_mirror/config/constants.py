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
Constants for Doc Mirror.
"""

from pathlib import Path

try:
    from importlib.metadata import PackageNotFoundError, version

    PACKAGE_VERSION = version("doc-mirror")
except PackageNotFoundError:  # pragma: no cover
    PACKAGE_VERSION = "0.0.0-dev"


class DocMirrorConstants:
    """Constants used throughout the mirror and scanner."""

    VERSION = PACKAGE_VERSION

    # Project paths
    PACKAGE_ROOT = Path(__file__).parent.parent

    # Resource paths
    DATA_DIR = PACKAGE_ROOT / "data"
    DEFAULT_POLICY_PATH = DATA_DIR / "default_policy.yaml"
    DEFAULT_TARGETS_PATH = DATA_DIR / "default_targets.yaml"

    # Local layout
    DEFAULT_MIRROR_ROOT = Path.home() / ".openclaw" / "docs"
    REPORT_FILENAME = "security-scan.log"

    # Remote endpoints
    DEFAULT_API_BASE_URL = "https://api.github.com"
    DEFAULT_RAW_BASE_URL = "https://raw.githubusercontent.com"
    DEFAULT_USER_AGENT = "doc-mirror"
    GITHUB_ACCEPT = "application/vnd.github+json"

    # Default values
    DEFAULT_ALLOWED_EXTENSIONS = frozenset({".md", ".mdx"})
    DEFAULT_CONCURRENCY = 16
    DEFAULT_TREE_TIMEOUT = 30.0
    DEFAULT_TREE_RETRIES = 3
    DEFAULT_FILE_TIMEOUT = 15.0
    DEFAULT_FILE_RETRIES = 3
    DEFAULT_RETRY_BASE_DELAY = 1.0
    DEFAULT_PROGRESS_INTERVAL = 50

    # Downstream indexer
    DEFAULT_INDEXER_COMMAND = "qmd"
    DEFAULT_COLLECTION_NAME = "openclaw-docs"
    DEFAULT_INDEX_MASK = "**/*.{md,mdx}"

    @classmethod
    def default_report_path(cls, mirror_root: Path) -> Path:
        """Report artifact location: a sibling of the mirror root."""
        return mirror_root.expanduser().resolve().parent / cls.REPORT_FILENAME
