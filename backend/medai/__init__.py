"""MedAI Pharmacy backend: catalog, sales and ledgers for a single pharmacy."""

__version__ = "0.1.0"
