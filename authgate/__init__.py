"""AuthGate: bearer token lifecycle service with email-verified accounts."""

__version__ = "0.1.0"
