"""Ingestion — source adapters and the normalized item shape."""
