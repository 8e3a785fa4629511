"""Credential hashing and token signing adapters."""
