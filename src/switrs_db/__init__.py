"""
Import SWITRS collision data into SQLite and reconcile free-text road names.
"""

__version__ = "0.1.0"
