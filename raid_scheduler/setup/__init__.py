"""Raid Scheduler Setup (config, logging, wiring)."""
