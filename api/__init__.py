"""HTTP surface for the lead discovery pipeline."""
