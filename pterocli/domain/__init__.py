"""Domain Layer: value objects, errors, events and ports of the panel transport."""
