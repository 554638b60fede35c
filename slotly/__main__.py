#!/usr/bin/env python3
"""
Convenience entry point for running slotly directly.

Usage: python -m slotly [command] [options]
"""

from .cli.app import app

if __name__ == "__main__":
    app()
