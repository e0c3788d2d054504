"""
Arbitrage Hub.

Market reference data (exchanges, assets, market pairs) and a store for
cross-exchange arbitrage strategies, with a suggestion engine that searches
the market-pair graph for geographic arbitrage opportunities.
"""

__version__ = "0.1.0"
