"""
Store environment enumeration.
"""

from enum import Enum


class Environment(str, Enum):
    """Environment in which a store transaction took place."""

    PRODUCTION = "Production"
    SANDBOX = "Sandbox"
