"""
Pytest configuration and shared fixtures for cursor-flake-updater tests.

This module provides common fixtures that can be used across all test files.
"""
import importlib.util
import sys
from pathlib import Path
from unittest.mock import MagicMock

import pytest


# Add scripts directory to path for imports
SCRIPTS_DIR = Path(__file__).parent.parent / "scripts"
sys.path.insert(0, str(SCRIPTS_DIR))


OLD_URL = (
    "https://downloads.cursor.com/production/45fd70f3fe72037444ba35c9e51ce86a1977ac11"
    "/linux/x64/Cursor-2.0.30-x86_64.AppImage"
)
NEW_URL = (
    "https://downloads.cursor.com/production/9d178a4a5589981b62546448bb32920a8219a5d0"
    "/linux/x64/Cursor-2.0.34-x86_64.AppImage"
)
OLD_HASH = "1a2b3c4d5e6f7g8h9i0j1k2l3m4n5o6p7q8r9s0t1u2v3w4x5y6z"
NEW_HASH = "abc123def456ghi789jkl012mno345pqr678stu901vwx234yz56"

SAMPLE_FLAKE = f'''{{
  description = "Cursor editor packaged from the upstream AppImage";

  outputs = {{ self, nixpkgs }}:
    let
      pkgs = import nixpkgs {{ system = "x86_64-linux"; config.allowUnfree = true; }};
      cursor = pkgs.appimageTools.wrapType2 rec {{
        pname = "cursor";
        version = "2.0.30";

        src = pkgs.fetchurl {{
          url = "{OLD_URL}";
          sha256 = "{OLD_HASH}";
        }};

        # previous release: {OLD_URL}
        passthru.updateScript = ./scripts/update-cursor.py;
      }};
    in
    {{
      packages.x86_64-linux.cursor = cursor;
    }};
}}
'''


# ============================================================================
# Path Fixtures
# ============================================================================

@pytest.fixture
def repo_root():
    """Provide the repository root path."""
    return Path(__file__).parent.parent


@pytest.fixture
def scripts_dir(repo_root):
    """Provide the scripts directory path."""
    return repo_root / "scripts"


# ============================================================================
# Manifest Fixtures
# ============================================================================

@pytest.fixture
def sample_flake():
    """Provide the text of a sample flake.nix."""
    return SAMPLE_FLAKE


@pytest.fixture
def flake_dir(tmp_path, sample_flake):
    """Create a temporary directory holding a sample flake.nix."""
    directory = tmp_path / "cursor-flake"
    directory.mkdir()
    (directory / "flake.nix").write_text(sample_flake, encoding="utf-8")
    return directory


@pytest.fixture
def flake_file(flake_dir):
    return flake_dir / "flake.nix"


# ============================================================================
# HTTP Mock Fixtures
# ============================================================================

@pytest.fixture
def mock_http_response():
    """Create a mock HTTP response object."""
    def _create_mock(status_code=200, text="", headers=None, url="", history=None, chunks=None):
        mock = MagicMock()
        mock.status_code = status_code
        mock.text = text
        mock.headers = headers or {}
        mock.url = url
        mock.history = history or []
        mock.iter_content.return_value = iter(chunks or [])
        mock.raise_for_status = MagicMock()
        mock.__enter__.return_value = mock

        if status_code >= 400:
            import requests
            mock.raise_for_status.side_effect = requests.HTTPError(f"HTTP {status_code}")

        return mock
    return _create_mock


@pytest.fixture
def mock_session():
    """Provide a MagicMock standing in for requests.Session."""
    return MagicMock()


# ============================================================================
# Utility Functions
# ============================================================================

def load_module_from_path(module_name: str, file_path: Path):
    """
    Dynamically load a Python module from a file path.

    Args:
        module_name: Name to give the loaded module
        file_path: Path to the Python file

    Returns:
        The loaded module object
    """
    spec = importlib.util.spec_from_file_location(module_name, str(file_path))
    if spec is None or spec.loader is None:
        raise ImportError(f"Cannot load module from {file_path}")

    module = importlib.util.module_from_spec(spec)
    spec.loader.exec_module(module)
    return module


@pytest.fixture
def load_module():
    """Provide the load_module_from_path function as a fixture."""
    return load_module_from_path

