"""Server-authoritative multiplayer arena."""
