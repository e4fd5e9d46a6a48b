#!/usr/bin/env python3
"""
Flake Manifest Helpers
Reads and rewrites the version, source URL and sha256 fields of flake.nix.
The file is treated as plain text: fields are found with regular expressions
and replaced in place, leaving every other byte untouched.
"""

import os
import re
import logging
from pathlib import Path
from dataclasses import dataclass
from typing import List, Tuple

from update_errors import ManifestLocked

MANIFEST_NAME = "flake.nix"
LOCK_NAME = ".flake.nix.lock"

VERSION_RE = re.compile(r'version = "([^"]*)"')
URL_RE = re.compile(r'https://downloads[.]cursor[.]com/[^"]*')
SHA256_RE = re.compile(r'sha256 = "([^"]*)"')


@dataclass
class ManifestFields:
    """Current values of the three tracked fields ("" when absent)"""
    version: str = ""
    url: str = ""
    sha256: str = ""


def read_fields(text: str) -> ManifestFields:
    """Return the first version, vendor URL and sha256 found in manifest text."""
    version = VERSION_RE.search(text)
    url = URL_RE.search(text)
    sha256 = SHA256_RE.search(text)
    return ManifestFields(
        version=version.group(1) if version else "",
        url=url.group(0) if url else "",
        sha256=sha256.group(1) if sha256 else "",
    )


def apply_update(text: str, current: ManifestFields, version: str, url: str, sha256: str) -> Tuple[str, List[str]]:
    """
    Substitute the new version, URL and hash into manifest text

    Args:
        text: Current manifest content
        current: Fields previously read from the same content
        version: New version string
        url: New artifact URL
        sha256: New content hash

    Returns:
        (updated text, warnings)
    """
    warnings: List[str] = []

    text, count = VERSION_RE.subn(lambda _m: f'version = "{version}"', text, count=1)
    if not count:
        warnings.append("No version assignment found in manifest; version not updated")

    # Replacing an empty string would splice the URL between every character
    if current.url:
        text = text.replace(current.url, url)
    else:
        warnings.append("No previous download URL found in manifest; URL not updated")

    text, count = SHA256_RE.subn(lambda _m: f'sha256 = "{sha256}"', text, count=1)
    if not count:
        warnings.append("No sha256 assignment found in manifest; hash not updated")

    return text, warnings


def manifest_path(flake_dir: Path) -> Path:
    return Path(flake_dir) / MANIFEST_NAME


def snapshot(path: Path) -> bytes:
    """Capture the exact manifest bytes so a failed build can be undone."""
    return Path(path).read_bytes()


def restore(path: Path, content: bytes) -> None:
    Path(path).write_bytes(content)
    logging.debug(f"Restored {path} ({len(content)} bytes)")


def read_text(path: Path) -> str:
    # newline='' keeps CRLF files byte-identical after a rewrite
    with open(path, "r", encoding="utf-8", newline="") as f:
        return f.read()


def write_text(path: Path, text: str) -> None:
    with open(path, "w", encoding="utf-8", newline="") as f:
        f.write(text)


class ManifestLock:
    """Advisory lock file next to the manifest, held for one updater run."""

    def __init__(self, flake_dir: Path):
        self.path = Path(flake_dir) / LOCK_NAME
        self._fd = None

    def acquire(self) -> None:
        try:
            self._fd = os.open(str(self.path), os.O_CREAT | os.O_EXCL | os.O_WRONLY)
        except FileExistsError:
            raise ManifestLocked(
                f"Another update appears to be running (lock file {self.path}). "
                "Remove it if no updater is active."
            )
        os.write(self._fd, str(os.getpid()).encode("ascii"))

    def release(self) -> None:
        if self._fd is None:
            return
        os.close(self._fd)
        self._fd = None
        self.path.unlink(missing_ok=True)

    def __enter__(self):
        self.acquire()
        return self

    def __exit__(self, exc_type, exc, tb):
        self.release()
        return False
