"""Raid Scheduler Application Layer."""
