"""Drafting kernel for wide-flange beam inspection sketches."""
