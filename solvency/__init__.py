"""
Point-in-time exposure and settlement analytics for constant-product perp markets.

`solvency.core` holds the pure, integer-only valuation engine;
`solvency.integration` parses snapshots and run configuration.
"""
