"""Edits on a decoded level: reindexing, cloning and cell-level changes."""
