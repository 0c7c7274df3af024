"""Stock rewards: double-entry reward ledger and portfolio valuation service."""
