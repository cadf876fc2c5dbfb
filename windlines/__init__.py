"""
windlines: streamline renderings of gridded wind fields.
"""

__version__ = "0.1.0"
