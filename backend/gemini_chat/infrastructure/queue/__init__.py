"""
Queue Infrastructure Module

RQ producer for generation jobs; task functions live in ``tasks``.
"""

from gemini_chat.infrastructure.queue.generation_queue import GenerationQueue

__all__ = ["GenerationQueue"]
