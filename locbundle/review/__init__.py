"""Interactive translation review."""

from .reviewer import ConsoleReviewer, ReviewContext, ReviewDecision, Reviewer

__all__ = ["ConsoleReviewer", "ReviewContext", "ReviewDecision", "Reviewer"]
