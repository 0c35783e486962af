"""Scheduled bus route animation on a map."""
