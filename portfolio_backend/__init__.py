"""
Backend package for the portfolio content API.

This package provides a FastAPI application with document-store and
object-storage abstractions behind the public portfolio site and the
admin dashboard.
"""
