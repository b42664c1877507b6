"""Benchmark configuration, result models and exceptions."""
