"""
Pydantic schema definitions for API payloads.

``User`` is both the stored record and the response body;
``UserPayload`` is what clients send when creating or replacing a
user.  Keeping them apart means a client can never choose an id.
"""
