"""Models package placeholder."""

__all__ = [
    "base",
    "user",
    "doctor",
    "patient",
    "appointment",
    "rating",
    "reminder",
    "notification",
]
