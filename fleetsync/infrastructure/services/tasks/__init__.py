"""Celery tasks triggered by the beat schedule."""
