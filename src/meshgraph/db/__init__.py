"""Snapshot persistence tables and async session management."""
