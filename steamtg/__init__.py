"""Driver dispatch HTTP API backed by PostgreSQL and PostGIS."""

__version__ = "0.1.0"