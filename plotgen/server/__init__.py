"""HTTP service for plotgen."""
