"""
Migration Name Resolver

Turns usernames and group names imported from other platforms into unique,
policy-compliant names. Provides configuration management, the shared
used-name registry, and the resolution engine.
"""

__version__ = "1.0.0"
