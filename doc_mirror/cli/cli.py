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

"""Command-line interface for Doc Mirror."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from collections.abc import Callable
from pathlib import Path

from ..config.config import Config
from ..config.constants import DocMirrorConstants
from ..core.coordinator import run_sync
from ..core.exceptions import ConfigurationError, IndexerError
from ..core.models import FlaggedFile, RunSummary, TargetStatus
from ..core.reporters.json_reporter import JSONReporter
from ..core.scan_policy import ScanPolicy
from ..core.targets import load_targets
from ..core.threat_scanner import ThreatScanner

logger = logging.getLogger("doc_mirror.cli")


# ---------------------------------------------------------------------------
# Shared helpers
# ---------------------------------------------------------------------------


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def _load_policy(args: argparse.Namespace) -> ScanPolicy:
    """Load scan policy from ``--policy`` flag or return the default.

    Raises:
        ConfigurationError: the policy file is missing or invalid
    """
    policy_value = getattr(args, "policy", None)
    if not policy_value:
        return ScanPolicy.default()

    try:
        policy = ScanPolicy.from_yaml(policy_value)
    except FileNotFoundError as e:
        raise ConfigurationError(f"Policy file not found: {policy_value}") from e
    logger.info("Using scan policy: %s (%s)", policy_value, policy.policy_name)
    return policy


def _build_config(args: argparse.Namespace) -> Config:
    """Build run configuration from ``--env-file`` and explicit flags."""
    overrides: dict = {}
    if getattr(args, "root", None):
        overrides["mirror_root"] = Path(args.root)
    if getattr(args, "concurrency", None) is not None:
        overrides["concurrency"] = args.concurrency
    if getattr(args, "skip_index", False):
        overrides["run_indexer"] = False

    env_file = getattr(args, "env_file", None)
    if env_file:
        return Config.from_file(Path(env_file), **overrides)
    return Config.from_env(**overrides)


def _make_status_printer(args: argparse.Namespace) -> Callable[[str], None]:
    """Return a printer that sends to stderr when JSON output is active."""
    is_json = getattr(args, "format", "summary") == "json"

    def _print(msg: str) -> None:
        print(msg, file=sys.stderr if is_json else sys.stdout)

    return _print


def _write_output(args: argparse.Namespace, output: str) -> None:
    """Write *output* to a file or stdout."""
    if getattr(args, "output", None):
        with open(args.output, "w", encoding="utf-8") as fh:
            fh.write(output)
        print(f"Report saved to: {args.output}", file=sys.stderr)
    else:
        print(output)


def _collect_documents(path: Path, extensions: frozenset[str]) -> list[tuple[str, Path]]:
    """Return ``(identifier, file)`` pairs for local documents under *path*."""
    if path.is_file():
        return [(path.name, path)]
    return [
        (p.relative_to(path).as_posix(), p)
        for p in sorted(path.rglob("*"))
        if p.is_file() and p.suffix in extensions
    ]


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


def sync_command(args: argparse.Namespace) -> int:
    """Handle the ``sync`` command."""
    try:
        config = _build_config(args)
        policy = _load_policy(args)
        targets = load_targets(config.mirror_root, args.targets)
        summary = asyncio.run(run_sync(config, targets, policy))
    except ConfigurationError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 1
    except IndexerError as e:
        print(f"Indexer failed: {e}", file=sys.stderr)
        return 1
    except OSError as e:
        print(f"Error writing mirror: {e}", file=sys.stderr)
        return 1

    print(_generate_sync_summary(summary))

    if args.fail_on_target_error and not summary.all_synced:
        return 1
    if args.fail_on_findings and summary.flagged:
        return 2
    return 0


def scan_command(args: argparse.Namespace) -> int:
    """Handle the ``scan`` command for local documents."""
    path = Path(args.path)
    if not path.exists():
        print(f"Error: Path does not exist: {path}", file=sys.stderr)
        return 1

    status = _make_status_printer(args)
    try:
        policy = _load_policy(args)
    except ConfigurationError as e:
        print(f"Error loading policy file: {e}", file=sys.stderr)
        return 1

    scanner = ThreatScanner(policy)
    documents = _collect_documents(path, DocMirrorConstants.DEFAULT_ALLOWED_EXTENSIONS)
    status(f"Scanning {len(documents)} documents under {path}")

    flagged: list[FlaggedFile] = []
    for identifier, file_path in documents:
        try:
            content = file_path.read_text(encoding="utf-8", errors="replace")
        except OSError as e:
            logger.warning("Could not read %s: %s", file_path, e)
            continue
        findings = scanner.scan(content)
        if findings:
            flagged.append(FlaggedFile(file=identifier, findings=findings))

    if args.format == "json":
        output = JSONReporter(pretty=not args.compact).generate_report(flagged, scanned_files=len(documents))
    else:
        output = _generate_scan_summary(flagged, len(documents))
    _write_output(args, output)

    if flagged and args.fail_on_findings:
        return 2
    return 0


def generate_policy_command(args: argparse.Namespace) -> int:
    """Handle the ``generate-policy`` command."""
    output_path = Path(args.output)
    try:
        ScanPolicy.default().to_yaml(output_path)
    except OSError as e:
        print(f"Error generating policy: {e}", file=sys.stderr)
        return 1

    print(f"Generated default scan policy: {output_path}\n")
    print("Edit the file to customise, then use:")
    print(f"  doc-mirror sync --policy {output_path}")
    print(f"  doc-mirror scan --policy {output_path} /path/to/docs")
    return 0


def print_config_command(args: argparse.Namespace) -> int:
    """Handle the ``print-config`` command."""
    try:
        config = _build_config(args)
    except ConfigurationError as e:
        print(f"Configuration error: {e}", file=sys.stderr)
        return 1

    snippet = {"mcpServers": {"qmd": {"command": config.indexer_command, "args": ["mcp"]}}}
    print(f"Docs mirrored at: {config.mirror_root}")
    print(f"Security report: {config.report_path}\n")
    print("Add to your MCP client configuration:")
    print(json.dumps(snippet, indent=2))
    return 0


# ---------------------------------------------------------------------------
# Summary formatters
# ---------------------------------------------------------------------------


def _generate_sync_summary(summary: RunSummary) -> str:
    lines = [
        "=" * 60,
        "Doc Mirror Sync",
        "=" * 60,
    ]
    for outcome in summary.outcomes:
        if outcome.status == TargetStatus.SYNCED and outcome.result is not None:
            result = outcome.result
            lines.append(f"  [OK]   {outcome.target_name}: {result.succeeded}/{result.attempted} files")
        else:
            label = "SKIP" if outcome.status == TargetStatus.UNREACHABLE else "FAIL"
            lines.append(f"  [{label}] {outcome.target_name}: {outcome.error}")

    lines.append("")
    flagged = summary.flagged
    if flagged:
        lines.append(f"Flagged files: {len(flagged)} (see {summary.report_path})")
    else:
        lines.append("Flagged files: 0")
    return "\n".join(lines)


def _generate_scan_summary(flagged: list[FlaggedFile], scanned: int) -> str:
    lines = [
        "=" * 60,
        "Doc Mirror Threat Scan",
        "=" * 60,
        f"Documents Scanned: {scanned}",
        f"Flagged Documents: {len(flagged)}",
        "",
    ]
    for entry in sorted(flagged, key=lambda f: f.file):
        lines.append(f"FILE: {entry.file}")
        for finding in entry.findings:
            lines.append(f"  [{finding.category.value}] {finding.match}")
    return "\n".join(lines)


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Doc Mirror - Mirror remote documentation trees and scan them for supply-chain threats",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  doc-mirror sync
  doc-mirror sync --root ~/docs --skip-index
  doc-mirror sync --targets my_targets.yaml --policy my_policy.yaml --fail-on-findings
  doc-mirror scan ~/.openclaw/docs --format json
  doc-mirror generate-policy -o my_policy.yaml
  doc-mirror print-config
        """,
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {DocMirrorConstants.VERSION}")
    subparsers = parser.add_subparsers(dest="command", help="Command to execute")

    # -- sync --------------------------------------------------------------
    sync_p = subparsers.add_parser("sync", help="Mirror all configured targets")
    sync_p.add_argument("--root", help="Mirror root directory (or set DOC_MIRROR_ROOT)")
    sync_p.add_argument("--targets", help="Targets YAML file (default: built-in targets)")
    sync_p.add_argument("--policy", help="Scan policy YAML file")
    sync_p.add_argument("--concurrency", type=int, help="Concurrent downloads per target")
    sync_p.add_argument("--skip-index", action="store_true", help="Do not rebuild the qmd index")
    sync_p.add_argument("--env-file", help="Load settings from a .env file")
    sync_p.add_argument("--fail-on-findings", action="store_true", help="Exit with code 2 if any file was flagged")
    sync_p.add_argument(
        "--fail-on-target-error", action="store_true", help="Exit with code 1 if any target did not sync"
    )
    sync_p.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")

    # -- scan --------------------------------------------------------------
    scan_p = subparsers.add_parser("scan", help="Scan local Markdown documents for threats")
    scan_p.add_argument("path", help="Document file or directory")
    scan_p.add_argument("--format", choices=["summary", "json"], default="summary", help="Output format")
    scan_p.add_argument("--compact", action="store_true", help="Compact JSON output")
    scan_p.add_argument("--policy", help="Scan policy YAML file")
    scan_p.add_argument("--output", "-o", help="Output file path")
    scan_p.add_argument("--fail-on-findings", action="store_true", help="Exit with code 2 if any file was flagged")
    scan_p.add_argument("--verbose", "-v", action="store_true", help="Enable debug logging")

    # -- generate-policy ---------------------------------------------------
    gp_p = subparsers.add_parser("generate-policy", help="Generate the default scan policy YAML")
    gp_p.add_argument("--output", "-o", default="scan_policy.yaml", help="Output file path")

    # -- print-config ------------------------------------------------------
    pc_p = subparsers.add_parser("print-config", help="Print the MCP client configuration snippet")
    pc_p.add_argument("--root", help="Mirror root directory (or set DOC_MIRROR_ROOT)")
    pc_p.add_argument("--env-file", help="Load settings from a .env file")

    # -- dispatch ----------------------------------------------------------
    args = parser.parse_args(argv)

    if not args.command:
        parser.print_help()
        return 1

    _configure_logging(getattr(args, "verbose", False))

    dispatch = {
        "sync": sync_command,
        "scan": scan_command,
        "generate-policy": generate_policy_command,
        "print-config": print_config_command,
    }
    handler = dispatch.get(args.command)
    if handler:
        return handler(args)

    parser.print_help()
    return 1


if __name__ == "__main__":
    sys.exit(main())
