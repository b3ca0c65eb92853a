"""Badge catalog, activity snapshots, award ledger and leaderboard."""
