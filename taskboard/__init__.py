"""
Backend package for the task board API.

This package provides a FastAPI application with auth, task and carousel
services layered over a SQLAlchemy-backed store (or an in-memory store for
local runs and tests).
"""
