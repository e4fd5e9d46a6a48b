#!/usr/bin/env python3
"""
Local simulation of the update workflow.

Runs the updater against the real flake.nix, reports whether it changed and
what the CI workflow would commit and release, then puts flake.nix back.
"""

import argparse
import os
import subprocess
import sys
from pathlib import Path
from dataclasses import dataclass
from typing import Callable, List, Optional

import flake_manifest
from cursor_updater import check_dependencies
from git_helpers import manifest_diff
from summary_utils import format_workflow_summary
from update_errors import UpdateError, WrongDirectory

UPDATE_SCRIPT = Path("scripts") / "update-cursor.py"
WORKFLOW_TOOLS = ['nix', 'nix-prefetch-url', 'git']

Runner = Callable[[Path], bool]


@dataclass
class WorkflowReport:
    update_success: bool
    changed: bool
    original_version: str
    new_version: Optional[str] = None
    diff: str = ""

    def summary(self) -> List[str]:
        return format_workflow_summary(self.update_success, self.changed, self.new_version)


def run_update_script(flake_dir: Path) -> bool:
    """Run the repository's update-cursor.py as a separate process, like the workflow does."""
    # The simulation must never commit or push
    env = os.environ.copy()
    env.pop("AUTO_COMMIT", None)

    result = subprocess.run(
        [sys.executable, str(Path(flake_dir) / UPDATE_SCRIPT), "--flake-dir", str(flake_dir)],
        cwd=str(flake_dir),
        env=env,
    )
    return result.returncode == 0


def step(message: str) -> None:
    print(f"[STEP] {message}")


def run_workflow_check(
    flake_dir: Path,
    runner: Optional[Runner] = None,
    *,
    update_script: Optional[Path] = None,
    tools: Optional[List[str]] = None,
) -> WorkflowReport:
    """
    Simulate the workflow once against flake_dir

    Args:
        flake_dir: Repository root containing flake.nix
        runner: Runs the updater, returns True on success
        update_script: Updater that must be present (defaults to scripts/update-cursor.py in flake_dir)
        tools: Commands that must be on PATH (defaults to nix, nix-prefetch-url, git)

    Returns:
        WorkflowReport (flake.nix has already been restored)
    """
    flake_dir = Path(flake_dir)
    runner = runner or run_update_script
    update_script = update_script or flake_dir / UPDATE_SCRIPT
    path = flake_manifest.manifest_path(flake_dir)

    step("Checking repository...")
    if not path.is_file() or not Path(update_script).is_file():
        raise WrongDirectory("Must be run from the repository root")
    print("✓ Repository check passed")

    step("Checking dependencies (like the workflow does)...")
    check_dependencies(WORKFLOW_TOOLS if tools is None else tools)

    step("Saving current flake.nix state...")
    backup = flake_manifest.snapshot(path)
    original_version = flake_manifest.read_fields(backup.decode("utf-8")).version
    print(f"✓ Backed up (current version: {original_version or 'unknown'})")

    try:
        step("Running update-cursor.py...")
        update_success = runner(flake_dir)

        step("Checking for changes...")
        current = flake_manifest.snapshot(path)
        changed = current != backup
        report = WorkflowReport(update_success, changed, original_version)
        if changed:
            report.new_version = flake_manifest.read_fields(current.decode("utf-8")).version
            print(f"✓ Changes detected! Version: {original_version} → {report.new_version}")
            step("Changes that would be committed:")
            report.diff = manifest_diff(path)
            print(report.diff)
        else:
            print("✓ No changes (already on latest version)")
    finally:
        step("Restoring original flake.nix...")
        flake_manifest.restore(path, backup)
        print("✓ Restored to original state")

    return report


def main(argv: Optional[List[str]] = None) -> int:
    parser = argparse.ArgumentParser(description="Simulate the Cursor update workflow locally")
    parser.add_argument("--flake-dir", type=Path, default=Path.cwd(),
                        help="Repository root containing flake.nix (default: current directory)")
    args = parser.parse_args(argv)

    print("=========================================")
    print("Testing Update Cursor Workflow Locally")
    print("=========================================")
    try:
        report = run_workflow_check(args.flake_dir)
    except UpdateError as e:
        print(f"Error: {e}")
        return 1

    print("\n".join(report.summary()))
    print("✓ Local test complete! Original state restored.")
    return 0


if __name__ == "__main__":
    sys.exit(main())
