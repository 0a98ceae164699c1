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
Configuration class for Doc Mirror.

Values are static for the lifetime of a run: defaults below, overridden by
environment variables (optionally loaded from a ``.env`` file) and then by
explicit constructor arguments / CLI flags.
"""

import os
from dataclasses import dataclass, field
from pathlib import Path

from dotenv import load_dotenv

from ..core.exceptions import ConfigurationError
from .constants import DocMirrorConstants


def _env_number(name: str, cast: type[int] | type[float]) -> int | float | None:
    raw = os.getenv(name)
    if raw is None or raw.strip() == "":
        return None
    try:
        return cast(raw)
    except ValueError as e:
        raise ConfigurationError(f"Invalid value for {name}: {raw!r}") from e


@dataclass
class Config:
    """
    Configuration for Doc Mirror.
    """

    # Local layout
    mirror_root: Path = DocMirrorConstants.DEFAULT_MIRROR_ROOT
    report_path: Path | None = None
    allowed_extensions: frozenset[str] = field(default_factory=lambda: DocMirrorConstants.DEFAULT_ALLOWED_EXTENSIONS)

    # Fetch pipeline
    concurrency: int = DocMirrorConstants.DEFAULT_CONCURRENCY
    tree_timeout_seconds: float = DocMirrorConstants.DEFAULT_TREE_TIMEOUT
    tree_max_retries: int = DocMirrorConstants.DEFAULT_TREE_RETRIES
    file_timeout_seconds: float = DocMirrorConstants.DEFAULT_FILE_TIMEOUT
    file_max_retries: int = DocMirrorConstants.DEFAULT_FILE_RETRIES
    retry_base_delay_seconds: float = DocMirrorConstants.DEFAULT_RETRY_BASE_DELAY
    progress_interval: int = DocMirrorConstants.DEFAULT_PROGRESS_INTERVAL

    # Remote endpoints
    api_base_url: str = DocMirrorConstants.DEFAULT_API_BASE_URL
    raw_base_url: str = DocMirrorConstants.DEFAULT_RAW_BASE_URL
    user_agent: str = DocMirrorConstants.DEFAULT_USER_AGENT
    github_token: str | None = None

    # Downstream indexer
    run_indexer: bool = True
    indexer_command: str = DocMirrorConstants.DEFAULT_INDEXER_COMMAND
    collection_name: str = DocMirrorConstants.DEFAULT_COLLECTION_NAME
    index_mask: str = DocMirrorConstants.DEFAULT_INDEX_MASK

    def __post_init__(self):
        """Load configuration from environment variables if not provided."""

        if self.mirror_root == DocMirrorConstants.DEFAULT_MIRROR_ROOT:
            if env_root := os.getenv("DOC_MIRROR_ROOT"):
                self.mirror_root = Path(env_root)
        self.mirror_root = Path(self.mirror_root).expanduser()

        if self.report_path is None:
            if env_report := os.getenv("DOC_MIRROR_REPORT_PATH"):
                self.report_path = Path(env_report).expanduser()
            else:
                self.report_path = DocMirrorConstants.default_report_path(self.mirror_root)

        if self.concurrency == DocMirrorConstants.DEFAULT_CONCURRENCY:
            if (value := _env_number("DOC_MIRROR_CONCURRENCY", int)) is not None:
                self.concurrency = int(value)

        if self.tree_timeout_seconds == DocMirrorConstants.DEFAULT_TREE_TIMEOUT:
            if (value := _env_number("DOC_MIRROR_TREE_TIMEOUT", float)) is not None:
                self.tree_timeout_seconds = float(value)

        if self.file_timeout_seconds == DocMirrorConstants.DEFAULT_FILE_TIMEOUT:
            if (value := _env_number("DOC_MIRROR_FILE_TIMEOUT", float)) is not None:
                self.file_timeout_seconds = float(value)

        if self.tree_max_retries == DocMirrorConstants.DEFAULT_TREE_RETRIES:
            if (value := _env_number("DOC_MIRROR_TREE_RETRIES", int)) is not None:
                self.tree_max_retries = int(value)

        if self.file_max_retries == DocMirrorConstants.DEFAULT_FILE_RETRIES:
            if (value := _env_number("DOC_MIRROR_FILE_RETRIES", int)) is not None:
                self.file_max_retries = int(value)

        if self.retry_base_delay_seconds == DocMirrorConstants.DEFAULT_RETRY_BASE_DELAY:
            if (value := _env_number("DOC_MIRROR_RETRY_BASE_DELAY", float)) is not None:
                self.retry_base_delay_seconds = float(value)

        if self.indexer_command == DocMirrorConstants.DEFAULT_INDEXER_COMMAND:
            if env_indexer := os.getenv("DOC_MIRROR_INDEXER"):
                self.indexer_command = env_indexer

        if os.getenv("DOC_MIRROR_SKIP_INDEX", "").lower() in ("true", "1"):
            self.run_indexer = False

        if self.github_token is None:
            self.github_token = os.getenv("GITHUB_TOKEN") or None

        self.allowed_extensions = frozenset(self.allowed_extensions)
        self._validate()

    def _validate(self) -> None:
        if self.concurrency < 1:
            raise ConfigurationError(f"concurrency must be at least 1 (got {self.concurrency})")
        if self.tree_max_retries < 1 or self.file_max_retries < 1:
            raise ConfigurationError("retry budgets must allow at least one attempt")
        if self.tree_timeout_seconds <= 0 or self.file_timeout_seconds <= 0:
            raise ConfigurationError("timeouts must be positive")
        if self.retry_base_delay_seconds < 0:
            raise ConfigurationError("retry base delay cannot be negative")
        if self.progress_interval < 1:
            raise ConfigurationError("progress_interval must be at least 1")

    @classmethod
    def from_env(cls, **overrides) -> "Config":
        """
        Create configuration from environment variables.

        Args:
            **overrides: Explicit field values that take precedence

        Returns:
            Config instance with values from environment
        """
        return cls(**overrides)

    @classmethod
    def from_file(cls, config_file: Path, **overrides) -> "Config":
        """
        Load configuration from a .env file.

        Args:
            config_file: Path to .env file
            **overrides: Explicit field values that take precedence

        Returns:
            Config instance
        """
        if not Path(config_file).exists():
            raise ConfigurationError(f"Environment file not found: {config_file}")
        load_dotenv(config_file, override=True)
        return cls.from_env(**overrides)
