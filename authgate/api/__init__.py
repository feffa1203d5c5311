"""Shared HTTP helpers for AuthGate blueprints."""
