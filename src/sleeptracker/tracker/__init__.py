"""Tracker state holder and the session types it publishes."""
