"""Definitions database and interactive query prompt for Stanza workspaces."""
