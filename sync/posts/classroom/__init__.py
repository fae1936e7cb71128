"""
Google Classroom integration components
"""
from .client import get_classroom_service
from .listing import ClassroomListSource, get_all_courses

__all__ = [
    'get_classroom_service',
    'get_all_courses',
    'ClassroomListSource',
]
