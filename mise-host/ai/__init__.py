"""Mise Host -- AI provider client."""
