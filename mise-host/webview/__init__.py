"""Mise Host -- panel command protocol and routing."""
