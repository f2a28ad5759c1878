"""
Infrastructure Module

Backend-facing implementations (Redis, in-memory store) of the core
protocols.
"""
