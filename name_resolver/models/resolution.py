"""
Request and result types of a name resolution
"""
from dataclasses import dataclass, asdict
from typing import Any, Dict, Optional

from ..constants import NameKinds, ResolutionConstants


@dataclass(frozen=True)
class ResolutionRequest:
    """One name to resolve"""

    kind: str
    raw_name: str
    fallback_name: str
    max_length: int = ResolutionConstants.MAX_LENGTH
    allow_reserved: bool = False

    def __post_init__(self):
        if self.kind not in NameKinds.ALL_KINDS:
            raise ValueError(f"Unknown name kind: {self.kind}")
        if self.max_length < ResolutionConstants.MIN_MAX_LENGTH:
            raise ValueError(f"max_length must be at least {ResolutionConstants.MIN_MAX_LENGTH}")


@dataclass(frozen=True)
class ResolvedName:
    """
    A resolved name

    name is the display-case form returned to the caller; name_lower is the
    form inserted into the used-name registry.
    """

    name: str
    name_lower: str
    kind: str
    suffix: Optional[int] = None
    used_fallback: bool = False

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    def __str__(self) -> str:
        return self.name
