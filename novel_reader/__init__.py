"""
Novel reader core package.

This package currently focuses on the backup subsystem. It exposes
dataclasses for every exportable entity, the versioned backup document, a
JSON codec, a converter for foreign (QuickNovel) datastore dumps, store
adapters, and the snapshot/restore pipeline that moves user state between a
live store and a portable file.
"""

__version__ = "0.1.0"
