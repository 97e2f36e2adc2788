"""Pytest configuration for sql2csv tests.

This module provides global pytest configuration and custom warning filters.
"""

import warnings

# TableInfo keeps a 'schema' field for the table namespace
warnings.filterwarnings(
    "ignore",
    message=r".*Field name \"schema\".*shadows an attribute.*",
    category=UserWarning,
)
