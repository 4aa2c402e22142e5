"""
MinIO File Manager - a small file manager for S3-compatible object storage.

This package contains the complete application:
- core: Request signing, listing parser and formatting helpers
- infrastructure: Object storage client and credential store
- api: FastAPI routes and dependencies for the local shell
- config: Application configuration
"""

__version__ = "0.1.0"
