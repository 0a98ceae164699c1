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
Scan policy: allow-lists and detector toggles for the threat scanner.

Documentation legitimately contains official installer one-liners and links
to release binaries. A ``ScanPolicy`` captures which of those hosts are
trusted, which address ranges count as private, and which detectors run.

Usage
-----
    from doc_mirror.core.scan_policy import ScanPolicy

    # Load built-in defaults
    policy = ScanPolicy.default()

    # Load an org policy (merges on top of defaults)
    policy = ScanPolicy.from_yaml("my_policy.yaml")

    # Dump the current (including default) policy for editing
    policy.to_yaml("generated_policy.yaml")
"""

from __future__ import annotations

import ipaddress
import logging
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from ..data import DEFAULT_POLICY_PATH
from .exceptions import ConfigurationError
from .models import ThreatCategory

logger = logging.getLogger(__name__)


@dataclass
class ShellPipePolicy:
    """Trusted installer hosts for pipe-to-shell and cmd-substitution."""

    trusted_domains: list[str] = field(default_factory=list)


@dataclass
class ExecutableUrlPolicy:
    """Executable download detection."""

    trusted_domains: list[str] = field(default_factory=list)
    extensions: list[str] = field(default_factory=list)


@dataclass
class RawIpPolicy:
    """Address ranges whose literal IPs are never reported."""

    private_networks: list[str] = field(default_factory=list)

    @property
    def networks(self) -> list[ipaddress.IPv4Network]:
        if not hasattr(self, "_networks_cache"):
            object.__setattr__(
                self, "_networks_cache", [ipaddress.IPv4Network(n, strict=False) for n in self.private_networks]
            )
        return self._networks_cache  # type: ignore[attr-defined, no-any-return]


@dataclass
class ScanPolicy:
    """Threat scanner policy – everything that should be customisable."""

    policy_name: str = "default"
    policy_version: str = "1.0"

    shell_pipe: ShellPipePolicy = field(default_factory=ShellPipePolicy)
    executable_urls: ExecutableUrlPolicy = field(default_factory=ExecutableUrlPolicy)
    raw_ip: RawIpPolicy = field(default_factory=RawIpPolicy)
    disabled_detectors: set[str] = field(default_factory=set)

    def is_enabled(self, category: ThreatCategory) -> bool:
        return category.value not in self.disabled_detectors

    # -----------------------------------------------------------------------
    # Construction helpers
    # -----------------------------------------------------------------------

    @classmethod
    def default(cls) -> ScanPolicy:
        """Load the built-in default policy that ships with the package."""
        return cls.from_yaml(DEFAULT_POLICY_PATH)

    @classmethod
    def from_yaml(cls, path: str | Path) -> ScanPolicy:
        """
        Load a policy from a YAML file.

        The YAML is first merged on top of the built-in defaults so that
        users only need to specify the sections they want to override.
        """
        path = Path(path)
        if not path.exists():
            raise FileNotFoundError(f"Policy file not found: {path}")

        try:
            with open(path, encoding="utf-8") as fh:
                raw = yaml.safe_load(fh) or {}
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Failed to parse policy {path}: {e}") from e

        if not isinstance(raw, dict):
            raise ConfigurationError(f"Policy {path} must be a YAML mapping")

        if path.resolve() == DEFAULT_POLICY_PATH.resolve():
            return cls._from_dict(raw)

        merged = cls._deep_merge(cls._load_default_raw(), raw)
        policy = cls._from_dict(merged)
        logger.debug("Loaded scan policy %s from %s", policy.policy_name, path)
        return policy

    def to_yaml(self, path: str | Path) -> None:
        """Dump the full policy to a YAML file for editing."""
        with open(path, "w", encoding="utf-8") as fh:
            fh.write("# Doc Mirror – Threat Scan Policy\n")
            fh.write("# Only include sections you want to override; omitted sections\n")
            fh.write("# will use the built-in defaults. Lists replace, they do not extend.\n\n")
            yaml.dump(self._to_dict(), fh, default_flow_style=False, sort_keys=False, width=120)

    # -----------------------------------------------------------------------
    # Internal parsing
    # -----------------------------------------------------------------------

    @classmethod
    def _load_default_raw(cls) -> dict[str, Any]:
        if DEFAULT_POLICY_PATH.exists():
            with open(DEFAULT_POLICY_PATH, encoding="utf-8") as fh:
                return yaml.safe_load(fh) or {}
        return {}

    @staticmethod
    def _deep_merge(base: dict, override: dict) -> dict:
        """Recursively merge *override* into *base*.

        For lists the override **replaces** the base so that a policy can
        narrow an allow-list without having to repeat every entry.
        """
        result = dict(base)
        for key, val in override.items():
            if key in result and isinstance(result[key], dict) and isinstance(val, dict):
                result[key] = ScanPolicy._deep_merge(result[key], val)
            else:
                result[key] = val
        return result

    @classmethod
    def _from_dict(cls, d: dict[str, Any]) -> ScanPolicy:
        sp = d.get("shell_pipe", {}) or {}
        eu = d.get("executable_urls", {}) or {}
        ri = d.get("raw_ip", {}) or {}

        known = {c.value for c in ThreatCategory}
        disabled = set(d.get("disabled_detectors", []) or [])
        unknown = disabled - known
        if unknown:
            raise ConfigurationError(f"Unknown detectors in disabled_detectors: {', '.join(sorted(unknown))}")

        networks = [str(n) for n in ri.get("private_networks", [])]
        for network in networks:
            try:
                ipaddress.IPv4Network(network, strict=False)
            except ValueError as e:
                raise ConfigurationError(f"Invalid private network {network!r}: {e}") from e

        return cls(
            policy_name=d.get("policy_name", "default"),
            policy_version=str(d.get("policy_version", "1.0")),
            shell_pipe=ShellPipePolicy(
                trusted_domains=[str(x) for x in sp.get("trusted_domains", [])],
            ),
            executable_urls=ExecutableUrlPolicy(
                trusted_domains=[str(x) for x in eu.get("trusted_domains", [])],
                extensions=[str(x).lstrip(".").lower() for x in eu.get("extensions", [])],
            ),
            raw_ip=RawIpPolicy(private_networks=networks),
            disabled_detectors=disabled,
        )

    def _to_dict(self) -> dict[str, Any]:
        return {
            "policy_name": self.policy_name,
            "policy_version": self.policy_version,
            "shell_pipe": {
                "trusted_domains": list(self.shell_pipe.trusted_domains),
            },
            "executable_urls": {
                "trusted_domains": list(self.executable_urls.trusted_domains),
                "extensions": list(self.executable_urls.extensions),
            },
            "raw_ip": {
                "private_networks": list(self.raw_ip.private_networks),
            },
            "disabled_detectors": sorted(self.disabled_detectors),
        }
