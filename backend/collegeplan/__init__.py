"""Application package for the college planning backend.

This package exposes the repository, service and model modules used by
the FastAPI application. Individual modules contain the concrete
implementations and documentation.
"""
