"""
quizmastery - mastery tracking and quiz session engine.

Turns per-question answer checks into a live session score, a durable
attempt history and an updated per-topic mastery estimate that drives topic
suggestion and cohort analytics.
"""

__version__ = "1.0.0"
