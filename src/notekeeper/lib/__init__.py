"""Lib."""
