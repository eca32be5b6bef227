"""Aim-point optimization engine."""
