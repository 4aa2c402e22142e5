"""
Infrastructure layer - external service integrations.

Each subdirectory wraps an external dependency:
- storage: MinIO/S3 object storage over HTTP
- credentials: Local persistence of the connection settings

These wrappers translate between external formats and our domain models.
"""
