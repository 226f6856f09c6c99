"""Raid Scheduler Domain Layer."""
