from knowly.db.base_class import Base  # noqa: F401

# Import all the models here so that Base has them registered
# This file should NOT be imported by models.
from knowly.models.user import User  # noqa: F401
from knowly.models.job import Job  # noqa: F401
from knowly.models.material import Material  # noqa: F401
from knowly.models.quiz_attempt import QuizAttempt  # noqa: F401
from knowly.models.usage import Subscription, UploadCounter  # noqa: F401
