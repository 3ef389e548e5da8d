"""worklink: task lifecycle, matching and live tracking core for a gig marketplace."""

__version__ = "0.1.0"
