"""clawkalash: cross-chain swap execution core for the Bungee aggregator."""

__version__ = "0.3.0"
