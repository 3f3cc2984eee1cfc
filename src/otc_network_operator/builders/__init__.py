"""Builders for operator resources."""
