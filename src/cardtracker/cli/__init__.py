"""
Command-Line Interface

Entry point: card-tracker (cardtracker.cli.main:main).
"""

from .main import main

__all__ = ["main"]
