"""
corpfin — fixed-precision decimal kernel and portfolio construction.
"""

from corpfin._version import __version__

__all__ = ["__version__"]
