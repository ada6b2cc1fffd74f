"""Command line interface for deploysync."""
