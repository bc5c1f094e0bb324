"""Token signing, password hashing, request gates and rate limiting."""
