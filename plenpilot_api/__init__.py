"""
Top‑level package for the PlenPilot API.

This file makes ``plenpilot_api`` a Python package so that modules
within ``app`` can be imported using fully qualified names like
``plenpilot_api.app.main``.  All functionality lives in submodules
under ``app``.
"""

__all__ = []
