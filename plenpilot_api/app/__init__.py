"""
Application package initializer.

This package contains the main entrypoint for the API and all of its
submodules.  Each domain (locations, time entries, equipment,
notifications, etc.) has a service in ``services``, request/response
schemas in ``schemas`` and a router defined in ``api/v1/endpoints``.
"""

from .main import app  # noqa: F401
