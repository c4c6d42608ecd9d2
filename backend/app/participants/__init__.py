"""Participant registration and liveness tracking."""
