#!/usr/bin/env python3
"""
Cursor Update Script (page scrape)
Finds the latest AppImage by matching direct download links on the download page
and updates flake.nix.
"""

from cursor_updater import main

if __name__ == "__main__":
    main(default_strategy="scrape")
