"""
Application package initializer.

The project is organised in layers: ``schemas`` defines the ``User``
resource, ``repositories`` stores it (in memory or in a relational
table), ``services`` sits between storage and transport, and
``api/v1/endpoints`` exposes it over HTTP.  ``core`` holds the
cross‑cutting pieces: configuration, logging, errors, database
connections and the request logging middleware.

The ASGI application itself lives in ``main`` and is not imported
here, so that importing a single layer (for example in tests) does not
build the whole application.
"""
