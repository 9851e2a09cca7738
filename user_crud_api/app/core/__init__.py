"""
Cross‑cutting infrastructure: configuration, logging, error types,
database connections and the request logging middleware.
"""
