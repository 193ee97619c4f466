"""auth/ -- Authentication and authorization package for SecDash.

Layer rule: auth/ imports from core/ and audit/ plus third-party libraries.
It does NOT import from api/. api/ imports from auth/, not the other way around.
"""
