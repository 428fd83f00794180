"""Shared test fixtures package.

Provides reusable helpers for all test suites.
"""
