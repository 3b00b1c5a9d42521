"""
Asset Kernel - inventory allocation and sequence-generation engine

An IT-asset request/allocation tracker core with:
- Atomic named sequences for request, asset and purchase identifiers
- A stock ledger that never goes negative
- First-free allocation of catalog units
- A ticket lifecycle whose status change and stock deduction commit together
"""

__version__ = "0.1.0"
