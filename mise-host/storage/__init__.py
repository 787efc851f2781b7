"""Mise Host -- artifact bookkeeping."""
