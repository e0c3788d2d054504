"""HTTP API for Arbitrage Hub."""
