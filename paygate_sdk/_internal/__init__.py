"""Internal modules for Paygate SDK.

WARNING: This package contains system-level modules used by the public client.
These are not intended for direct use in application code.

Modules:
    dispatch - Request dispatch core (encoding, transports, classification)
    http - Shared HTTP client configuration
"""
