"""Planner backend and client task store."""
