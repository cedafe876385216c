"""HTTP API for the order relay."""
