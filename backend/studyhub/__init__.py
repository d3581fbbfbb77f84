"""Application package for the study timer and tasks backend.

This package exposes the storage, service and model modules used by
the FastAPI application. Individual modules contain the concrete
implementations and documentation.
"""
