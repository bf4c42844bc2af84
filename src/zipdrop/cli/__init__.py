"""Command-line interface for zipdrop."""
