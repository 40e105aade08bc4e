"""
Memory Vault: personal memory notes with a Memory Vault-only assistant.
"""

from .core.config import VERSION

__version__ = VERSION
