"""Shared helpers for console output."""
