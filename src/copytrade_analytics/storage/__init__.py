"""Reference storage adapters for the trade repository and config store."""
