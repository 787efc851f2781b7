"""Mise Host -- generation workflows."""
