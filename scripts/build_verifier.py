#!/usr/bin/env python3
"""
Build and post-build checks for the Cursor flake.
"""

import os
import logging
import subprocess
from pathlib import Path
from dataclasses import dataclass, field
from typing import Callable, List, Optional

BUILD_TIMEOUT = int(os.environ.get('CURSOR_BUILD_TIMEOUT', '1800'))  # seconds
VERSION_TIMEOUT = 30
BUILD_TARGET = ".#cursor"

RESULT_DIR = "result"
EXECUTABLE = Path("bin") / "cursor"
ICON = Path("share") / "pixmaps" / "cursor.png"
DESKTOP_ENTRY = Path("share") / "applications" / "cursor.desktop"

Builder = Callable[[Path], bool]


@dataclass
class BuildReport:
    executable: Optional[Path] = None
    built_version: str = ""
    version_matches: bool = False
    has_icon: bool = False
    has_desktop_entry: bool = False
    warnings: List[str] = field(default_factory=list)


def nix_build(flake_dir: Path, *, target: str = BUILD_TARGET, timeout: int = BUILD_TIMEOUT) -> bool:
    """Run `nix build` in flake_dir. Returns True on success."""
    print("🔨 Testing build...")
    try:
        # Output is streamed to the terminal, build logs can be long
        result = subprocess.run(['nix', 'build', target], cwd=str(flake_dir), timeout=timeout)
    except subprocess.TimeoutExpired:
        print(f"⏰ Build timed out after {timeout}s")
        return False
    except OSError as e:
        print(f"❌ Could not run nix build: {e}")
        return False
    return result.returncode == 0


def read_built_version(executable: Path, *, timeout: int = VERSION_TIMEOUT) -> str:
    """Return the first line of `<executable> --version`, or "unknown"."""
    try:
        result = subprocess.run(
            [str(executable), '--version'],
            capture_output=True,
            text=True,
            timeout=timeout,
        )
    except (OSError, subprocess.TimeoutExpired) as e:
        logging.debug(f"{executable} --version failed: {e}")
        return "unknown"
    lines = result.stdout.strip().splitlines()
    if result.returncode != 0 or not lines:
        return "unknown"
    return lines[0].strip()


def verify_build(flake_dir: Path, expected_version: str) -> BuildReport:
    """Inspect ./result after a successful build. Problems are reported as warnings."""
    report = BuildReport()
    result_dir = Path(flake_dir) / RESULT_DIR
    executable = result_dir / EXECUTABLE

    if not (executable.is_file() and os.access(executable, os.X_OK)):
        logging.debug(f"No executable at {executable}, skipping verification")
        return report

    report.executable = executable
    report.built_version = read_built_version(executable)
    print(f"ℹ️  Built version: {report.built_version}")

    report.version_matches = report.built_version == expected_version
    if report.version_matches:
        print("✅ Version verification passed!")
    else:
        report.warnings.append(f"Version mismatch: expected {expected_version}, got {report.built_version}")

    report.has_icon = (result_dir / ICON).is_file()
    if report.has_icon:
        print("✅ Icon successfully extracted and installed!")
    else:
        report.warnings.append("Icon not found - might not display properly in desktop")

    report.has_desktop_entry = (result_dir / DESKTOP_ENTRY).is_file()
    if report.has_desktop_entry:
        print("✅ Desktop entry created!")
    else:
        report.warnings.append("Desktop entry not found")

    for warning in report.warnings:
        print(f"⚠️  {warning}")
    return report
