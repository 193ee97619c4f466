"""audit/ -- Append-only activity log and security event recording for SecDash.

Layer rule: audit/ imports only from core/ plus third-party libraries.
It does NOT import from api/ or auth/. auth/ writes audit records through
the AuditStore interface; audit/ knows nothing about who calls it.
"""
