"""Domain Event definitions.

Represents significant occurrences during a panel API call (deferrals,
retries, failures) that observers may react to.
"""
