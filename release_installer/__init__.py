"""
release-installer — install GitHub release binaries as managed services.
"""

__version__ = "0.1.0"
