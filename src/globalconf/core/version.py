"""Control-plane build signature recorded in the intent options.

Worker agents compare this signature with their own to detect that the
control plane was upgraded and the flows it emits may have changed shape.
"""

from __future__ import annotations

from globalconf.core.config import VersionSettings


def internal_version(settings: VersionSettings) -> str:
    """Render the signature as "{package}-{schema}-{actions}.{minor}"."""
    return f"{settings.package_version}-{settings.schema_version}-{settings.action_count}.{settings.minor_version}"
