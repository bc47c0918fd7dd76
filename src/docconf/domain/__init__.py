"""Domain layer: references, aggregates and the document store contract."""
