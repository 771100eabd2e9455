"""Command-line arithmetic quiz runner."""
