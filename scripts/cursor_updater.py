#!/usr/bin/env python3
"""
Cursor Flake Updater
Checks for a newer Cursor AppImage and updates flake.nix (version, URL, sha256),
then builds the package to make sure the update works. A failed build restores
flake.nix to exactly what it was before the run.
"""

import argparse
import contextlib
import json
import logging
import os
import shutil
import sys
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, List, Optional

import flake_manifest
from build_verifier import BuildReport, Builder, nix_build, verify_build
from hash_fetcher import DEFAULT_HASH_METHOD, HASH_METHODS, Hasher, fetch_hash, get_hasher
from update_errors import BuildError, DependencyMissing, ResolutionError, UpdateError, WrongDirectory
from version_detector import DEFAULT_STRATEGY, STRATEGIES, VersionProvider, fixed_version, get_resolver, resolve_version

SOFTWARE_NAME = "cursor"

LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO').upper()
LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
LOG_DATE_FORMAT = '%H:%M:%S'

UP_TO_DATE = "up_to_date"
UPDATED = "updated"


@dataclass
class ReleaseDescriptor:
    version: str
    url: str
    hash: str


@dataclass
class UpdateOutcome:
    status: str
    previous: flake_manifest.ManifestFields
    release: Optional[ReleaseDescriptor] = None
    build: Optional[BuildReport] = None
    warnings: List[str] = field(default_factory=list)

    @property
    def updated(self) -> bool:
        return self.status == UPDATED


def required_tools(hash_method: str = DEFAULT_HASH_METHOD) -> List[str]:
    tools = ['nix']
    if hash_method == 'nix':
        tools.append('nix-prefetch-url')
    return tools


def check_dependencies(tools: List[str]) -> None:
    """Raise DependencyMissing if any of the tools is not on PATH."""
    print("🔍 Checking for required tools...")
    missing = [tool for tool in tools if shutil.which(tool) is None]
    if missing:
        raise DependencyMissing(missing)
    print("✅ All required tools found.")


def check_flake_dir(flake_dir: Path) -> Path:
    path = flake_manifest.manifest_path(flake_dir)
    if not path.is_file():
        raise WrongDirectory(f"{flake_manifest.MANIFEST_NAME} not found in {flake_dir}; run from the cursor-flake directory")
    return path


def update_flake(
    flake_dir: Path,
    resolver: Callable[[], str],
    hasher: Optional[Hasher] = None,
    *,
    builder: Builder = nix_build,
    verifier: Callable[[Path, str], BuildReport] = verify_build,
    version_provider: Optional[VersionProvider] = None,
) -> UpdateOutcome:
    """
    Bring flake.nix in flake_dir up to date with the latest Cursor release

    Args:
        flake_dir: Directory containing flake.nix
        resolver: Returns the latest artifact URL (raises ResolutionError)
        hasher: Returns the content hash for a URL
        builder: Builds the flake, returns True on success
        verifier: Inspects the build result for the expected version
        version_provider: Fallback when the version is not in the URL

    Returns:
        UpdateOutcome describing what happened

    Raises:
        UpdateError subclasses on any fatal condition
    """
    path = check_flake_dir(Path(flake_dir))
    text = flake_manifest.read_text(path)
    current = flake_manifest.read_fields(text)

    print(f"ℹ️  Current version: {current.version or 'unknown'}")
    print(f"ℹ️  Current URL: {current.url}")
    if not current.version:
        logging.info("Current version not found in manifest")

    new_url = resolver()
    if not new_url:
        raise ResolutionError("Latest URL not found")

    if new_url == current.url:
        print(f"✅ You are already on the latest version ({current.version}).")
        print("ℹ️  No update needed.")
        return UpdateOutcome(UP_TO_DATE, current)

    new_version = resolve_version(new_url, version_provider)
    print(f"ℹ️  New version: {new_version}")

    new_hash = fetch_hash(new_url, hasher)
    release = ReleaseDescriptor(new_version, new_url, new_hash)

    print(f"📝 Updating {flake_manifest.MANIFEST_NAME}...")
    original = flake_manifest.snapshot(path)
    updated_text, warnings = flake_manifest.apply_update(text, current, new_version, new_url, new_hash)
    for warning in warnings:
        print(f"⚠️  {warning}")
        logging.warning(warning)

    try:
        flake_manifest.write_text(path, updated_text)
        built = builder(Path(flake_dir))
    except BaseException:
        flake_manifest.restore(path, original)
        raise

    if not built:
        print("❌ Build failed!")
        print(f"ℹ️  Reverting changes to {flake_manifest.MANIFEST_NAME}...")
        flake_manifest.restore(path, original)
        print(f"✅ {flake_manifest.MANIFEST_NAME} reverted.")
        raise BuildError(f"Build failed for Cursor {new_version}; {flake_manifest.MANIFEST_NAME} restored")

    print("✅ Build successful!")
    report = verifier(Path(flake_dir), new_version)
    for warning in report.warnings:
        logging.warning(warning)
    warnings.extend(report.warnings)

    print(f"✅ Updated {SOFTWARE_NAME}: {current.version or 'unknown'} → {new_version}")
    return UpdateOutcome(UPDATED, current, release, report, warnings)


def setup_logging(verbose: bool = False, quiet: bool = False) -> None:
    """Configure logging based on verbosity settings."""
    if quiet:
        level = logging.WARNING
    elif verbose:
        level = logging.DEBUG
    else:
        level = logging.INFO

    # Override with environment variable if set
    if LOG_LEVEL != 'INFO':
        level = getattr(logging, LOG_LEVEL, logging.INFO)

    logging.basicConfig(
        level=level,
        format=LOG_FORMAT,
        datefmt=LOG_DATE_FORMAT
    )


def build_parser(default_strategy: str = DEFAULT_STRATEGY) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Update the Cursor package flake to the latest release")
    parser.add_argument("--flake-dir", type=Path, default=Path.cwd(),
                        help="Directory containing flake.nix (default: current directory)")
    parser.add_argument("--strategy", choices=sorted(STRATEGIES), default=default_strategy,
                        help=f"How to find the latest AppImage URL (default: {default_strategy})")
    parser.add_argument("--hash-method", choices=sorted(HASH_METHODS), default=DEFAULT_HASH_METHOD,
                        help=f"How to compute the AppImage hash (default: {DEFAULT_HASH_METHOD})")
    parser.add_argument("--version", dest="new_version",
                        help="Version to use when it cannot be read from the download URL")
    parser.add_argument("--auto-commit", action="store_true",
                        help="Commit and push flake.nix after a successful update")
    parser.add_argument("--verbose", "-v", action="store_true", help="Enable verbose logging")
    parser.add_argument("--quiet", "-q", action="store_true", help="Reduce logging output")
    return parser


def run(args: argparse.Namespace) -> UpdateOutcome:
    flake_dir = args.flake_dir
    check_dependencies(required_tools(args.hash_method))
    check_flake_dir(flake_dir)

    print("ℹ️  Cursor Package Flake Updater")
    provider = fixed_version(args.new_version) if args.new_version else None
    with flake_manifest.ManifestLock(flake_dir):
        return update_flake(
            flake_dir,
            get_resolver(args.strategy),
            get_hasher(args.hash_method),
            version_provider=provider,
        )


def main(argv: Optional[List[str]] = None, default_strategy: str = DEFAULT_STRATEGY) -> None:
    """Main update function"""
    args = build_parser(default_strategy).parse_args(argv)
    setup_logging(args.verbose, args.quiet)
    structured_only = os.environ.get('STRUCTURED_ONLY') == '1'

    output = open(os.devnull, "w", encoding="utf-8") if structured_only else contextlib.nullcontext(sys.stdout)
    try:
        with output as stream, contextlib.redirect_stdout(stream):
            outcome = run(args)
    except UpdateError as e:
        print(f"❌ {e}", file=sys.stderr if structured_only else sys.stdout)
        print(json.dumps({"updated": False, "name": SOFTWARE_NAME, "error": e.code}))
        sys.exit(1)

    version = outcome.release.version if outcome.release else outcome.previous.version
    if outcome.updated and not structured_only:
        print("ℹ️  Package updated successfully!")
        print("ℹ️  To use in your system: rebuild your main NixOS configuration")

    auto_commit = (
        args.auto_commit
        or os.environ.get("AUTO_COMMIT") == "1"
    )
    if auto_commit and outcome.updated:
        from git_helpers import commit_manifest_change
        commit_manifest_change(flake_manifest.manifest_path(args.flake_dir), version, push=True)

    print(json.dumps({"updated": outcome.updated, "name": SOFTWARE_NAME, "version": version}))


if __name__ == "__main__":
    main()
