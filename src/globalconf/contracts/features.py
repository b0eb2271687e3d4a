"""Fleet-wide capability flags converged from worker node advertisements.

Each flag starts enabled and can only be downgraded by evidence from a
worker node that does not advertise the capability. FeatureSet is a frozen
value type: "did the features change?" is plain equality over all flags.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass, fields, replace
from types import MappingProxyType

# Flag name -> capability key advertised in a worker node's other_config
FEATURE_CAPABILITY_KEYS: MappingProxyType[str, str] = MappingProxyType(
    {
        "ct_no_masked_label": "ct-no-masked-label",
        "mac_binding_timestamp": "mac-binding-timestamp",
        "ct_lb_related": "ct-lb-related",
        "fdb_timestamp": "fdb-timestamp",
        "ls_dpg_column": "ls-dpg-column",
        "ct_commit_nat_v2": "ct-commit-nat-v2",
        "ct_commit_to_zone": "ct-commit-to-zone",
    }
)


@dataclass(frozen=True, slots=True)
class FeatureSet:
    """Converged capability flags. Defaults to everything enabled."""

    ct_no_masked_label: bool = True
    mac_binding_timestamp: bool = True
    ct_lb_related: bool = True
    fdb_timestamp: bool = True
    ls_dpg_column: bool = True
    ct_commit_nat_v2: bool = True
    ct_commit_to_zone: bool = True

    @classmethod
    def all_enabled(cls) -> FeatureSet:
        """Return the seed value for a convergence pass."""
        return cls()

    def downgrade(self, flag: str) -> FeatureSet:
        """Return a copy with flag disabled.

        Raises:
            KeyError: If flag is not a known feature name.
        """
        if flag not in FEATURE_CAPABILITY_KEYS:
            raise KeyError(f"Unknown feature flag: {flag!r}")
        return replace(self, **{flag: False})

    def disabled(self) -> tuple[str, ...]:
        """Names of flags that are not universally supported."""
        return tuple(f.name for f in fields(self) if not getattr(self, f.name))

    def as_dict(self) -> dict[str, bool]:
        return asdict(self)
