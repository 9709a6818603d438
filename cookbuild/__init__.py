"""An incremental build library driven by HELL6.99MO recipe files."""

__version__ = "6.0.0"