"""
Application package initializer.

This package contains the main entrypoint for the API and all of its
submodules: ``core`` (configuration, logging, database, errors),
``schemas`` (request and response models), ``services`` (business
logic) and ``api`` (versioned HTTP routes).
"""

from .main import app  # noqa: F401
