"""Bate-papo chat backend."""
