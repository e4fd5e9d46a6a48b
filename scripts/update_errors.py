#!/usr/bin/env python3
"""
Error types raised by the Cursor flake updater.
Every error is fatal for the run; `code` is emitted in the structured JSON output.
"""


class UpdateError(Exception):
    """Base class for fatal updater errors"""

    code = "update_failed"


class DependencyMissing(UpdateError):
    code = "missing_dependency"

    def __init__(self, tools):
        self.tools = list(tools)
        super().__init__(f"Required tool(s) not installed: {', '.join(self.tools)}")


class WrongDirectory(UpdateError):
    code = "wrong_directory"


class ManifestLocked(UpdateError):
    code = "manifest_locked"


class ResolutionError(UpdateError):
    """Latest artifact URL could not be found"""

    code = "latest_url_not_found"


class VersionResolutionError(UpdateError):
    code = "version_unavailable"


class HashFetchError(UpdateError):
    code = "hash_unavailable"


class BuildError(UpdateError):
    """Build of the updated manifest failed; the manifest has been restored"""

    code = "build_failed"
