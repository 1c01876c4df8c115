"""Bookstore Manager - Services Package

This package contains service modules for external integrations:
- Books REST API client
"""
