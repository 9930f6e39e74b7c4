"""Output layer: renders ServiceResult for humans, scripts, and machines.

This layer may import from domain and services.result only.
"""
