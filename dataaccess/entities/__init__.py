"""
Entities Package — Data-Record Definitions
==========================================

The `entities` package is the first location the class registry searches
when a type name is handed to `Database.select`. A type ``FooBar`` is looked
up in the module ``dataaccess.entities.foo_bar`` (or ``foobar``).

Records are SQLAlchemy 2.0 typed mappings on the shared declarative base, so
their column-to-attribute binding table is read from the mapper.

Contents
--------
- User
    Registered user: `id`, `email` (unique), `name`, `created_on` (UTC).
"""
