"""Static plots of sweep results (matplotlib)."""
