#!/usr/bin/env python3
"""
Local test script for the update workflow
Simulates what the CI workflow does without needing GitHub Actions.
flake.nix is always restored afterwards.
"""

import sys

from workflow_check import main

if __name__ == "__main__":
    sys.exit(main())
