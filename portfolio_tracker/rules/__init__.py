"""Rule engines run on every price update."""
