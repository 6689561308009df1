"""
Background job queues: processors, Celery tasks and the enqueue API.
"""
