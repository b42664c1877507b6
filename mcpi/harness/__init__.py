"""Sequential benchmark harness."""
