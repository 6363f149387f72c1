"""Bundled templates (formula stub, config file)."""
