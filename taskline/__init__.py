"""Checkbox task lines in plain-text documents."""
