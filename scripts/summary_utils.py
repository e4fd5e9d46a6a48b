from typing import List, Optional

def commit_message(version: str) -> str:
    return f"chore: update Cursor to version {version}"

def release_tag(version: str) -> str:
    return f"v{version}"

def format_workflow_summary(update_success: bool, changed: bool, new_version: Optional[str] = None) -> List[str]:
    lines = [
        "=========================================",
        "Test Summary",
        "=========================================",
        f"Update script: {'✓ Success' if update_success else '✗ Failed'}",
        f"Changes detected: {'Yes' if changed else 'No'}",
        "Workflow simulation: ✓ Complete",
        "",
        "The workflow would:",
    ]
    if changed:
        new_version = new_version or "unknown"
        lines.extend([
            "  1. Update flake.nix",
            f"  2. Commit with message: '{commit_message(new_version)}'",
            "  3. Push to GitHub",
            f"  4. Create release: {release_tag(new_version)}",
        ])
    else:
        lines.append("  - Do nothing (no changes needed)")
    return lines
