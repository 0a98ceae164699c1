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

"""Doc Mirror exceptions.

This module defines custom exceptions for Doc Mirror operations.
All exceptions inherit from DocMirrorError for easy catching.

Example:
    >>> from doc_mirror.core.exceptions import FetchError, TruncatedTreeError
    >>>
    >>> try:
    ...     files = await resolver.resolve(target)
    ... except TruncatedTreeError as e:
    ...     print(f"Manifest incomplete: {e}")
    ... except FetchError as e:
    ...     print(f"Manifest unreachable ({e.status}): {e}")
"""


class DocMirrorError(Exception):
    """Base exception for all Doc Mirror errors."""

    pass


class FetchError(DocMirrorError):
    """Raised when a fetch fails after its retry budget is exhausted.

    Carries the URL, the last observed HTTP status (``None`` for timeouts
    and transport errors) and the number of attempts made.
    """

    def __init__(self, message: str, url: str | None = None, status: int | None = None, attempts: int = 0):
        super().__init__(message)
        self.url = url
        self.status = status
        self.attempts = attempts


class ManifestError(DocMirrorError):
    """Raised when a manifest response does not have the expected shape."""

    pass


class TruncatedTreeError(ManifestError):
    """Raised when the remote manifest reports itself as truncated.

    A truncated manifest cannot be trusted as a complete listing, so the
    target is failed instead of being partially mirrored.
    """

    def __init__(self, target_name: str, slug: str):
        super().__init__(f"Git tree for {slug} is truncated; refusing to mirror {target_name} from a partial listing")
        self.target_name = target_name
        self.slug = slug


class IndexerError(DocMirrorError):
    """Raised when the downstream indexing command fails.

    This indicates:
    - The indexer executable is not installed
    - The indexer exited with a non-zero status
    """

    def __init__(self, message: str, command: str | None = None, returncode: int | None = None):
        super().__init__(message)
        self.command = command
        self.returncode = returncode


class ConfigurationError(DocMirrorError):
    """Raised when a targets, policy or environment file is invalid."""

    pass
