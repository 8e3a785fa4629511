"""Credential and identity normalization rules."""
