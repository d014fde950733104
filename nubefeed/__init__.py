"""
Google Shopping XML feeds for Tiendanube stores.
"""

__version__ = "1.0.0"
