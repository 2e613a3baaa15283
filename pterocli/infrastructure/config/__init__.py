"""Configuration loading and the settings-backed credential resolver."""
