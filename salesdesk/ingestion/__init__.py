"""Ingestion package for SalesDesk.

Contains configuration, schemas, and services for bulk lead import
from CSV spreadsheets.
"""

from .config import ingestion_settings  # noqa: F401
