"""Local order book client for the dYdX indexer feed."""
