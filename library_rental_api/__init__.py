"""
Top-level package for the Library Rental API.

Makes ``library_rental_api`` a package so that modules within ``app``
can be imported using fully qualified names like
``library_rental_api.app.main``.

The package provides no public exports; all functionality lives in
submodules under ``app``.
"""

__all__ = []
