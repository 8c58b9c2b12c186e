"""
inplace_rebalance
- Rewrites every file under a pool root so the allocator spreads its blocks
  across all member devices.
"""

__version__ = "0.1.0"
