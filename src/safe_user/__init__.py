"""Authentication and user persistence core."""
