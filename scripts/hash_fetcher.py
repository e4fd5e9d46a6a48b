#!/usr/bin/env python3
"""
Content hash retrieval for the Cursor AppImage.

"nix" asks nix-prefetch-url, which downloads the file into the Nix store (or reuses
it) and prints the base32 SHA-256 the flake expects. "stream" downloads the file
with requests and computes a hex SHA-256, which fetchurl accepts as well.
"""

import os
import hashlib
import logging
import subprocess
from typing import Callable, Optional

import requests

from update_errors import HashFetchError
from version_detector import get_session

PREFETCH_TIMEOUT = int(os.environ.get('CURSOR_PREFETCH_TIMEOUT', '600'))
DOWNLOAD_TIMEOUT = 60
DEFAULT_HASH_METHOD = os.environ.get('CURSOR_HASH_METHOD', 'nix')

Hasher = Callable[[str], str]


def nix_prefetch_hash(url: str, *, timeout: int = PREFETCH_TIMEOUT) -> str:
    """Return the Nix base32 SHA-256 of the file at url."""
    try:
        result = subprocess.run(
            ['nix-prefetch-url', url],
            capture_output=True,
            text=True,
            timeout=timeout,
        )
    except (OSError, subprocess.TimeoutExpired) as e:
        raise HashFetchError(f"Failed to get hash for {url}: {e}")

    hash_value = result.stdout.strip().splitlines()[-1].strip() if result.stdout.strip() else ""
    if result.returncode != 0 or not hash_value:
        logging.debug(f"nix-prefetch-url stderr: {result.stderr.strip()}")
        raise HashFetchError(f"Failed to get hash for {url}")
    return hash_value


def stream_sha256(url: str, *, session: Optional[requests.Session] = None, timeout: int = DOWNLOAD_TIMEOUT) -> str:
    """Download url and return its hex SHA-256."""
    session = session or get_session()
    try:
        with session.get(url, timeout=timeout, stream=True) as response:
            response.raise_for_status()

            sha256_hash = hashlib.sha256()
            received = 0
            for chunk in response.iter_content(chunk_size=8192):
                sha256_hash.update(chunk)
                received += len(chunk)
    except requests.RequestException as e:
        raise HashFetchError(f"Failed to get hash for {url}: {e}")

    if not received:
        raise HashFetchError(f"Failed to get hash for {url}: empty download")
    return sha256_hash.hexdigest()


HASH_METHODS = {
    'nix': nix_prefetch_hash,
    'stream': stream_sha256,
}


def get_hasher(method: str = DEFAULT_HASH_METHOD) -> Hasher:
    try:
        return HASH_METHODS[method]
    except KeyError:
        raise ValueError(f"Unknown hash method: {method!r} (expected one of {', '.join(HASH_METHODS)})")


def fetch_hash(url: str, hasher: Optional[Hasher] = None) -> str:
    """Fetch the content hash of url, raising HashFetchError on an empty result."""
    print("🔍 Fetching SHA256 hash...")
    hasher = hasher or get_hasher()
    hash_value = (hasher(url) or "").strip()
    if not hash_value:
        raise HashFetchError(f"Failed to get hash for {url}")
    print(f"✅ SHA256 hash: {hash_value}")
    return hash_value
