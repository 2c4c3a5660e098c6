"""Combat resolution."""
