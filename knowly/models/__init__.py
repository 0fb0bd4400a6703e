from knowly.models.user import User
from knowly.models.material import Material
from knowly.models.job import Job
from knowly.models.quiz_attempt import QuizAttempt  # noqa: F401
from knowly.models.usage import Subscription, UploadCounter  # noqa: F401

__all__ = ["User", "Material", "Job"]
