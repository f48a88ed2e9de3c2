"""Pydantic data models for shows, tallies, tours, workflows and progress events."""
