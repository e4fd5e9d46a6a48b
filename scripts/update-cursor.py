#!/usr/bin/env python3
"""
Cursor Update Script
Finds the latest AppImage by following the download API redirect and updates flake.nix.
"""

from cursor_updater import main

if __name__ == "__main__":
    main(default_strategy="redirect")
