"""HTTP adapters for the Pterodactyl Panel API.

Builds and sends single authenticated requests and normalizes the panel's
error envelope into PanelApiError values.
"""
