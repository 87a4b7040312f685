#!/usr/bin/env python3
"""
Seasonarr entry point.
Ranks upcoming seasonal anime for your AniList users.
"""

from rankers.seasonal import main

if __name__ == "__main__":
    main()
