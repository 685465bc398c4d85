"""Portfolio-level removal and allocation advice."""
