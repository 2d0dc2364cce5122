"""
nftsale Core Module

Contract host, storage, messages, hosted contracts and the sale controller.
"""

__all__ = []
