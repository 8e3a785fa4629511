"""Relational store adapters."""
