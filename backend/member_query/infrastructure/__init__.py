"""Infrastructure Layer — database sessions and logging setup (the imperative shell)."""
