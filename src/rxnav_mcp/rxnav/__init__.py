"""RxNav REST API access: HTTP client, terminology resolver and ATC helpers."""

from .client import RxNavClient
from .resolver import TerminologyResolver

__all__ = ["RxNavClient", "TerminologyResolver"]
