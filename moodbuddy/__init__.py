"""
MoodBuddy - трекинг самочувствия с геймификацией и чат-компаньоном
"""

__version__ = "1.0.0"
