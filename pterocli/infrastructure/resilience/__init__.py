"""API Resilience Implementations.

Contains the per-credential rate limiter, its bounded window store and the
429 retry service with exponential backoff.
Bounded Context: API Resilience
"""
