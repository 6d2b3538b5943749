"""
golinks package initializer.
"""

from . import directory
from . import dispatch
from . import storage

__all__ = ["directory", "dispatch", "storage"]
