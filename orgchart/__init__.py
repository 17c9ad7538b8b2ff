"""JSON HTTP service for the departments and jobs of an organisation chart, stored in SQLite."""

__version__ = "0.1.0"