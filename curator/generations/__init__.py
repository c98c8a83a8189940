"""Generation listings, curated-feed scoring and the record pipeline behind them."""
