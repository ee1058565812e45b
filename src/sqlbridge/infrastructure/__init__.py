"""
Infrastructure Layer

Reusable SQL generation and schema services: the canonical type model, the
dialect registry and the statement builders. Nothing in this layer touches a
live connection except the identifier-length probe.
"""
