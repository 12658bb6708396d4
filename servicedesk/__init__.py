"""Service desk report aggregation and export engine."""
