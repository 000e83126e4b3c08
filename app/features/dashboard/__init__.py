"""Management dashboard aggregations."""
