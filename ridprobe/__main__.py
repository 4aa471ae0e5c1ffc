#!/usr/bin/env python3
"""
ridprobe module entry point
Allows running: python3 -m ridprobe
"""

from ridprobe.cli import main

if __name__ == '__main__':
    main()
