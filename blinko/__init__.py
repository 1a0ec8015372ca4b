"""Blinko AI backend."""
