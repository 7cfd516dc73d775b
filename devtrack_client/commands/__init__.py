"""Command handlers for the devtrack CLI."""
