"""Shared utilities for deploysync."""
