"""
Application layer wiring the infrastructure components together.
"""

from .startup import UploaderStartup

__all__ = [
    "UploaderStartup",
]
