#!/usr/bin/env python3
"""
Git helper utilities for the Cursor flake updater
Shows, commits and optionally pushes changes to flake.nix.
"""

import subprocess
from pathlib import Path
from typing import Tuple

from summary_utils import commit_message

REPO_ROOT = Path(__file__).parent.parent

def run_git_command(args, cwd: Path = REPO_ROOT) -> Tuple[int, str, str]:
    """Run a git command and return (returncode, stdout, stderr)."""
    try:
        result = subprocess.run(
            args,
            capture_output=True,
            text=True,
            cwd=str(cwd),
            encoding="utf-8",
            errors="replace",
        )
        return result.returncode, result.stdout.strip(), result.stderr.strip()
    except Exception as e:
        return 1, "", str(e)

def manifest_diff(manifest_path: Path, max_lines: int = 50) -> str:
    """Return the working tree diff of the manifest, truncated to max_lines."""
    p = Path(manifest_path)
    rc, out, err = run_git_command(["git", "diff", "--", p.name], cwd=p.parent)
    if rc != 0:
        print(f"⚠️  git diff failed: {err or out}")
        return ""
    return "\n".join(out.splitlines()[:max_lines])

def commit_manifest_change(manifest_path: Path, version: str, push: bool = False) -> bool:
    """Stage and commit the manifest if it has changes. Optionally push.

    Returns True if a commit was created, False otherwise.
    """
    p = Path(manifest_path)
    if not p.exists():
        print(f"⚠️  Auto-commit skipped: manifest not found: {manifest_path}")
        return False
    cwd = p.parent

    rc, out, err = run_git_command(["git", "add", "--", p.name], cwd=cwd)
    if rc != 0:
        print(f"⚠️  git add failed: {err or out}")
        return False

    rc, ns_out, ns_err = run_git_command(["git", "diff", "--cached", "--name-only", "--", p.name], cwd=cwd)
    if rc != 0:
        print(f"⚠️  git diff --cached failed: {ns_err or ns_out}")
        return False

    if not ns_out.strip():
        print("ℹ️  No staged changes for flake.nix, skipping commit.")
        return False

    rc, out, err = run_git_command(["git", "commit", "-m", commit_message(version), "--", p.name], cwd=cwd)
    if rc != 0:
        reason = err or out
        if "nothing to commit" in reason.lower():
            print("ℹ️  No changes staged to commit.")
        else:
            print(f"⚠️  git commit failed: {reason}")
        return False

    print(out or "✅ Commit created")

    if push:
        push_changes(cwd)

    return True

def push_changes(cwd: Path = REPO_ROOT):
    """Push committed changes to the remote."""
    rc, out, err = run_git_command(["git", "push"], cwd=cwd)
    if rc != 0:
        print(f"⚠️  git push failed: {err or out}")
    else:
        print(out or "⬆️  Pushed changes to remote")
