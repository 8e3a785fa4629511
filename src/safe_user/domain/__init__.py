"""Domain rules shared across application services."""
