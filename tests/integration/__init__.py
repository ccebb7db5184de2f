"""Integration tests for the gatehouse CLI."""
