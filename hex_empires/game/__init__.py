"""Game orchestration: events, research, the game map and turn rotation."""
