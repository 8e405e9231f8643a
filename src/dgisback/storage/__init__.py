"""Blob storage for uploaded images."""

from .objects import ObjectStore, create_s3_client

__all__ = ["ObjectStore", "create_s3_client"]
