"""Utility modules for lapsquery.

Modules:
    console: Rich console output
    date_parser: FILETIME and ISO 8601 conversion
    dns: Domain controller discovery
    helpers: General helper functions
    ldap: LDAP path, filter and connection utilities
    logging: Logging configuration
"""
