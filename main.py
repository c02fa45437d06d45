#!/usr/bin/env python3
"""
Command-line entry point for the inbox agent.

Usage:
    python main.py run --config agent.json
"""

from inbox_agent.cli.main import main


if __name__ == '__main__':
    main()
