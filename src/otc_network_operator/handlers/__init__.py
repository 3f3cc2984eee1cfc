"""Handler modules for CRD resources.

Handlers are registered explicitly from ``main`` so that the session cache
and reconciler are constructed once and passed in.
"""

from . import managed, provider_config

__all__ = ["managed", "provider_config"]
