"""Mise Host -- host collaborators: files, secrets, panel transport, errors."""
