"""Persistent storage for sleep nights."""
