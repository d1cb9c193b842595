"""FastAPI adapter exposing product, cart and wishlist operations."""
