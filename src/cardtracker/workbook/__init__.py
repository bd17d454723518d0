"""
Workbook Package

Ledger store keeping one CSV tab per card.
"""

from .datastore import CsvWorkbookStore, tab_names_for

__all__ = ["CsvWorkbookStore", "tab_names_for"]
