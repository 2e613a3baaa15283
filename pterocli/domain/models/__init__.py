"""Domain models shared by the transport layer and its callers."""
