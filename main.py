#!/usr/bin/env python3
"""
bvhdump - Humanoid rig animation to BVH exporter

Usage:
    python main.py clips RIG                 # List exportable clips
    python main.py dump RIG --clip NAME      # Export a clip to BVH
    python main.py --help                    # Show help
"""

import sys

from bvhdump.cli import main

if __name__ == "__main__":
    sys.exit(main())
