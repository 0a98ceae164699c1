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
Doc Mirror - Mirror remote documentation trees and scan them for supply-chain threats.
"""

from .config.constants import PACKAGE_VERSION as __version__

__author__ = "Cisco Systems, Inc."


def __getattr__(name: str):
    """Lazy-load public API symbols on first access.

    Keeps ``import doc_mirror`` cheap: httpx and the scanner regexes are only
    loaded when a symbol that needs them is requested.
    """
    _lazy_map = {
        "Config": (".config.config", "Config"),
        "DocMirrorConstants": (".config.constants", "DocMirrorConstants"),
        "SyncCoordinator": (".core.coordinator", "SyncCoordinator"),
        "run_sync": (".core.coordinator", "run_sync"),
        "RetryingFetcher": (".core.fetcher", "RetryingFetcher"),
        "MirrorSynchronizer": (".core.mirror", "MirrorSynchronizer"),
        "Finding": (".core.models", "Finding"),
        "FlaggedFile": (".core.models", "FlaggedFile"),
        "RunSummary": (".core.models", "RunSummary"),
        "SyncTarget": (".core.models", "SyncTarget"),
        "ThreatCategory": (".core.models", "ThreatCategory"),
        "ScanPolicy": (".core.scan_policy", "ScanPolicy"),
        "load_targets": (".core.targets", "load_targets"),
        "ThreatScanner": (".core.threat_scanner", "ThreatScanner"),
        "scan_content": (".core.threat_scanner", "scan_content"),
        "TreeResolver": (".core.tree", "TreeResolver"),
    }
    if name in _lazy_map:
        module_path, attr = _lazy_map[name]
        import importlib

        mod = importlib.import_module(module_path, __package__)
        val = getattr(mod, attr)
        # Cache on the module so __getattr__ is only called once per symbol
        globals()[name] = val
        return val
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


__all__ = [
    "SyncCoordinator",
    "run_sync",
    "RetryingFetcher",
    "TreeResolver",
    "MirrorSynchronizer",
    "ThreatScanner",
    "scan_content",
    "ScanPolicy",
    "SyncTarget",
    "Finding",
    "FlaggedFile",
    "RunSummary",
    "ThreatCategory",
    "load_targets",
    "Config",
    "DocMirrorConstants",
]
