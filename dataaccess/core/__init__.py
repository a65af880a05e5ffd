"""
Infrastructure definitions: the access layer and the class registry.

This package is also the second location the class registry searches, so
``registry.resolve("Database")`` hands back a shared ``Database`` built from
settings.
"""
