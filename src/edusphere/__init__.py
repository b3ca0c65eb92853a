"""EduSphere achievements and leaderboard service."""

__version__ = "0.1.0"
