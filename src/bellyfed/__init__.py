"""Bellyfed dish rankings service."""
