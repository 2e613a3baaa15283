"""pterocli: rate-limited, retrying transport for the Pterodactyl Panel API."""

__version__ = "1.0.0"
