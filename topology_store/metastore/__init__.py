"""
Metadata store package.

This package breaks the store into focused mixin modules while exporting the
single public ``MetadataStore`` entrypoint.
"""

from .store import MetadataStore

__all__ = ["MetadataStore"]
