"""Entity-scoped connection operations composed over the broker."""
