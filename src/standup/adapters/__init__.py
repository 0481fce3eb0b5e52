"""Adapters - I/O implementations of ports."""

from .file_store import FileStore
from .supabase_api import SupabaseAdapter, sign_in

__all__ = [
    "FileStore",
    "SupabaseAdapter",
    "sign_in",
]
