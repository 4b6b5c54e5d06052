# SQLAlchemy models
from .base import Base
from .learner import AttemptRow, LearnerRecordRow, TopicMasteryRow, User
from .question import QuestionRow

__all__ = [
    # Base
    "Base",
    # Learners
    "User",
    "LearnerRecordRow",
    "TopicMasteryRow",
    "AttemptRow",
    # Catalog
    "QuestionRow",
]
