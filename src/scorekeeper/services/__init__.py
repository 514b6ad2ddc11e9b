"""Business logic for the leaderboard."""
