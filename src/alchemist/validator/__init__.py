"""Validation engine: static checks, rule evaluation, cycle and capacity analysis, ranking."""
