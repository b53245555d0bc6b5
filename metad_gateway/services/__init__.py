"""Request-scoped operations of the gateway."""
