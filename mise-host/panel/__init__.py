"""Mise Host -- panel lifecycle and session state."""
