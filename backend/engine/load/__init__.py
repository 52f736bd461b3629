"""Load modelling -- synthetic controller housekeeping load."""

from .load_model import controller_load_w, load_profile

__all__ = ["controller_load_w", "load_profile"]
