"""Bookstore Manager - Core Application Package

This package contains the catalog client modules:
- CLI interface (main.py)
- Catalog state and flows (catalog.py)
- Data models (book.py)
- Draft validation (validators.py)
- Terminal rendering (ui_helpers.py)
"""

__version__ = "1.0.0"
