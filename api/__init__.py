"""HTTP surface over the accord engine."""
