"""
Billing Cache

Versioned cache-aside layer for billing reference data.
"""

__version__ = "1.0.0"
