#!/usr/bin/env python3
"""Entry point to rank jobs for a profile.

    python run_ranker.py --profile config/profile.example.yaml --jobs jobs.json
"""
from __future__ import annotations

import sys
from pathlib import Path

sys.path.insert(0, str(Path(__file__).resolve().parent))

from jobrank.cli import main

if __name__ == "__main__":
    sys.exit(main())
