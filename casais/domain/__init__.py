"""Domain aggregates, services and the resource query contract."""
