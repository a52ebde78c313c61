"""Shared utilities for y3-bridge."""
