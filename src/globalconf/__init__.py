"""
globalconf: incremental reconciliation of the control plane's global configuration.

Keeps the operator-authored intent record and the published state record in
sync, and converges worker node capability advertisements into one feature set.
"""

__version__ = "0.1.0"
