"""Domain layer: value objects, the event aggregate and audit records.

This package defines the primitives that every other layer depends on
but never modifies.  Everything here is immutable.
"""
