"""MetaServe features."""
