"""
Version 1 of the API.

This subpackage bundles the user and health endpoints.  Unlike many
versioned APIs the routes are mounted at the root (``/users``,
``/health``) because existing clients call them without a prefix.
"""
