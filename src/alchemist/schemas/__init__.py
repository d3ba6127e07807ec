"""Pydantic models for records, rule definitions and engine configuration."""
