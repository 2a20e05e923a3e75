#!/usr/bin/env python3
"""
Eel Tracking System - CLI Entry Point

Usage:
    python main.py process <video_path> [options]
"""

from eeltrack.cli import cli


if __name__ == "__main__":
    cli()
