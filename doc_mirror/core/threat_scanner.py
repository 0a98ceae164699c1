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
Heuristic threat scanner for mirrored documentation.

Flags text that looks like a supply-chain payload aimed at whoever (or
whatever agent) later reads the mirror:

- base64-exec:       ``base64 -d ... | bash`` on one line
- pipe-to-shell:     ``curl/wget <http(s) url> ... | sh`` on one line
- cmd-substitution:  ``$(curl/wget <http(s) url> ...)`` on one line
- raw-ip-url:        http(s) URLs whose host is a public IPv4 literal
- executable-url:    http(s) URLs that end in an installer/archive/script extension
- prompt-injection:  fake UI banners, agent-addressed run orders, instruction overrides

Detection is purely pattern based. Allow-lists from the :class:`ScanPolicy`
suppress installer one-liners and vendor downloads that documentation
legitimately contains. Every reported match is a verbatim slice of the input.
"""

from __future__ import annotations

import ipaddress
import re
from collections.abc import Iterable

from .models import Finding, ThreatCategory
from .scan_policy import ScanPolicy

_SHELLS = r"(?:bash|sh|zsh)"
_SUDO = r"(?:sudo(?:\s+-\S+(?:\s+\w+)?)*\s+)?"

# Line-scoped: callers feed one line at a time.
_BASE64_EXEC_RE = re.compile(
    rf"\bbase64\s+(?:-[dD]|--decode)\b.*?\|\s*{_SUDO}{_SHELLS}\b",
    re.IGNORECASE,
)
_PIPE_TO_SHELL_RE = re.compile(
    rf"\b(?:curl|wget)\s+[^|]*?https?://[^|]*\|\s*{_SUDO}{_SHELLS}\b",
    re.IGNORECASE,
)
_CMD_SUBSTITUTION_RE = re.compile(
    r"\$\(\s*(?:curl|wget)\s+[^)]*?https?://[^)]*\)",
    re.IGNORECASE,
)

# Whole-document. The host must end at the fourth octet (no ``1.2.3.4.nip.io``).
_RAW_IP_URL_RE = re.compile(
    r"https?://(\d{1,3}\.\d{1,3}\.\d{1,3}\.\d{1,3})(?![\w-]|\.\w)",
    re.IGNORECASE,
)

_TRAILING_PUNCT = "\"'<>)].,;:"

_PROMPT_INJECTION_PATTERNS = [
    # Fake UI/system elements
    re.compile(r"setup[_-]?wizard\s*:", re.IGNORECASE),
    re.compile(r"installation[_-]?required\s*:", re.IGNORECASE),
    re.compile(r"system[_-]?command\s*:", re.IGNORECASE),
    # Agent-targeted run orders
    re.compile(
        r"(?:as\s+an?\s+ai|claude|assistant|ai\s+agent)[,:]?\s*(?:you\s+)?(?:must|should|need\s+to)\s+(?:run|execute)",
        re.IGNORECASE,
    ),
    # Instruction override
    re.compile(r"ignore\s+(?:all\s+)?(?:previous|prior|above)\s+instructions?\s+and", re.IGNORECASE),
    # Urgency + execution
    re.compile(r"(?:urgent|immediate(?:ly)?|critical)\s*:?\s*(?:run|execute)\s+(?:this|now)", re.IGNORECASE),
]


def _executable_url_re(extensions: list[str]) -> re.Pattern[str] | None:
    if not extensions:
        return None
    # Longest first so ``tar.gz`` wins over a shorter alternative sharing its tail.
    alternatives = "|".join(re.escape(ext) for ext in sorted(set(extensions), key=len, reverse=True))
    # Brackets end a URL, so a Markdown link's text and target match separately.
    # One trailing sentence mark is allowed and later stripped.
    return re.compile(
        rf"https?://[^\s\"'<>()\[\]]+?\.(?:{alternatives})[)\]]*[.,;:]?(?=[\s\"'<>()\[\]]|$)",
        re.IGNORECASE,
    )


def is_private_ipv4(host: str, networks: Iterable[ipaddress.IPv4Network]) -> bool:
    """
    Check whether a dotted-quad host falls in one of *networks*.

    Leading zeros are dropped from each octet, so ``127.000.000.001`` is
    loopback. Strings that are not valid IPv4 addresses (e.g. ``999.1.1.1``)
    are never private.
    """
    try:
        address = ipaddress.IPv4Address(".".join(str(int(octet)) for octet in host.split(".")))
    except ValueError:
        return False
    return any(address in network for network in networks)


def _contains_any(text: str, needles: Iterable[str]) -> bool:
    return any(needle in text for needle in needles)


class ThreatScanner:
    """Applies the fixed detector battery to document text."""

    def __init__(self, policy: ScanPolicy | None = None):
        """
        Initialize scanner.

        Args:
            policy: Allow-lists and detector toggles. If None, loads built-in defaults.
        """
        self.policy = policy or ScanPolicy.default()
        self._executable_re = _executable_url_re(self.policy.executable_urls.extensions)

    def scan(self, content: str) -> list[Finding]:
        """
        Scan document text.

        Findings are grouped by detector in a fixed order and, within a
        detector, appear in document order, so identical input always yields
        an identical list.
        """
        lines = content.split("\n")
        enabled = self.policy.is_enabled
        findings: list[Finding] = []

        if enabled(ThreatCategory.BASE64_EXEC):
            findings.extend(self._scan_base64_exec(lines))
        if enabled(ThreatCategory.PIPE_TO_SHELL):
            findings.extend(self._scan_pipe_to_shell(lines))
        if enabled(ThreatCategory.CMD_SUBSTITUTION):
            findings.extend(self._scan_cmd_substitution(lines))
        if enabled(ThreatCategory.RAW_IP_URL):
            findings.extend(self._scan_raw_ip_urls(content))
        if enabled(ThreatCategory.EXECUTABLE_URL):
            findings.extend(self._scan_executable_urls(content))
        if enabled(ThreatCategory.PROMPT_INJECTION):
            findings.extend(self._scan_prompt_injection(content))

        return findings

    # ------------------------------------------------------------------
    # Detectors
    # ------------------------------------------------------------------

    def _scan_base64_exec(self, lines: list[str]) -> list[Finding]:
        return [
            Finding(ThreatCategory.BASE64_EXEC, m.group(0)) for line in lines for m in _BASE64_EXEC_RE.finditer(line)
        ]

    def _scan_pipe_to_shell(self, lines: list[str]) -> list[Finding]:
        trusted = self.policy.shell_pipe.trusted_domains
        return [
            Finding(ThreatCategory.PIPE_TO_SHELL, m.group(0))
            for line in lines
            for m in _PIPE_TO_SHELL_RE.finditer(line)
            if not _contains_any(m.group(0), trusted)
        ]

    def _scan_cmd_substitution(self, lines: list[str]) -> list[Finding]:
        trusted = self.policy.shell_pipe.trusted_domains
        return [
            Finding(ThreatCategory.CMD_SUBSTITUTION, m.group(0))
            for line in lines
            for m in _CMD_SUBSTITUTION_RE.finditer(line)
            if not _contains_any(m.group(0), trusted)
        ]

    def _scan_raw_ip_urls(self, content: str) -> list[Finding]:
        networks = self.policy.raw_ip.networks
        return [
            Finding(ThreatCategory.RAW_IP_URL, m.group(0))
            for m in _RAW_IP_URL_RE.finditer(content)
            if not is_private_ipv4(m.group(1), networks)
        ]

    def _scan_executable_urls(self, content: str) -> list[Finding]:
        if self._executable_re is None:
            return []
        trusted = self.policy.executable_urls.trusted_domains
        findings = []
        for m in self._executable_re.finditer(content):
            url = m.group(0).rstrip(_TRAILING_PUNCT)
            if _contains_any(url, trusted):
                continue
            findings.append(Finding(ThreatCategory.EXECUTABLE_URL, url))
        return findings

    def _scan_prompt_injection(self, content: str) -> list[Finding]:
        findings = []
        for pattern in _PROMPT_INJECTION_PATTERNS:
            match = pattern.search(content)
            if match:
                findings.append(Finding(ThreatCategory.PROMPT_INJECTION, match.group(0)))
        return findings


def scan_content(content: str, policy: ScanPolicy | None = None) -> list[Finding]:
    """
    Convenience function to scan one document.

    Args:
        content: Document text
        policy: Optional scan policy (built-in defaults when omitted)

    Returns:
        Findings in detector order
    """
    return ThreatScanner(policy).scan(content)
