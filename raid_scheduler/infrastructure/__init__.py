"""Raid Scheduler Infrastructure Layer."""
