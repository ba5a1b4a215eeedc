"""Daily sales growth for artist cards."""
