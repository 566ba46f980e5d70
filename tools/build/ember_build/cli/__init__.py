"""Command-line interfaces for ember-build."""
