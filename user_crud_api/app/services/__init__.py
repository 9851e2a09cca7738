"""
Service layer abstraction.

The service sits between the HTTP handlers and the repository.  By
depending only on the ``UserRepository`` contract, handlers keep
working unchanged whether users are kept in memory or in a database.
"""
