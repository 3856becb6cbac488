"""
Gateway Service package for the Convert Gateway.

- app.main: Application entrypoint that wires routes and lifecycle.
- app.auth: Google ID token verification and session token codec.
- app.domain: The auth guard and the audited convert operation.
- app.audit: In-memory, newest-first audit trail.
- app.uploads: Size-capped multipart intake.

Module import must not perform network calls; all IO happens in route
handlers or the lifespan hooks.
"""
