"""Core infrastructure: settings, logging, stores and pure derivations."""
