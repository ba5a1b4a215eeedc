"""Sales-milestone achievements for artist cards."""
