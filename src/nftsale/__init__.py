"""
nftsale - Fixed-Price NFT Sale

A sale controller that deploys its own NFT collection, links to it through
an instantiation reply, and mints sequential tokens to buyers paying an
exact amount of a fungible token.

Main Components:
- Sale: configuration store, linkage, mint workflow, queries
- Contracts: payment token and NFT collection
- Host: atomic execution and message dispatch
- API: HTTP interface to the host

For detailed documentation, see: DESIGN.md
"""

__version__ = "0.1.0"

__all__ = []
