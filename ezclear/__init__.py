"""
EZ Clear - local services marketplace.

Job posting, applications and the hiring lifecycle between hirers and workers.
"""

try:
    from importlib.metadata import version

    __version__ = version("ezclear")
except Exception:
    __version__ = "0.0.0"

__all__ = ["__version__"]
