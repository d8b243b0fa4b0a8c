"""Rendering of state graphs and their partitions."""
