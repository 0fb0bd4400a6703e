# Celery autodiscover only imports "knowly.worker.tasks" by default.
# Tasks live in separate modules, so import them here to register them.
from knowly.worker.generate_tasks import generate_material_content, regenerate_quiz  # noqa: F401
