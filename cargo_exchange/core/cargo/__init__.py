"""
Домен груза.
"""

from cargo_exchange.core.cargo.models import Cargo, Dimensions

__all__ = ["Cargo", "Dimensions"]
