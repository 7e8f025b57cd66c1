"""Sync operations (scanning and uploading)"""
from .scanner import walk_tree, resolve_root_prefix, to_remote_key
from .transfer import sync_item, upload_worker

__all__ = [
    "walk_tree", "resolve_root_prefix", "to_remote_key",
    "sync_item", "upload_worker",
]
