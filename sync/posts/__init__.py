"""
posts module - Keeps course announcements, coursework and materials in sync
with a local JSON cache and merges them into newest-first feeds
"""
from .cache import DiskCache
from .controller import ControllerTable, ListController
from .feed import DisplayOption, PostFeed
from .merge import merge_into, merged_with
from .models import Announcement, CourseMaterial, CourseWork, Page, Post, ResourceKind
from .session import SyncSession

__all__ = [
    'Announcement',
    'ControllerTable',
    'CourseMaterial',
    'CourseWork',
    'DiskCache',
    'DisplayOption',
    'ListController',
    'Page',
    'Post',
    'PostFeed',
    'ResourceKind',
    'SyncSession',
    'merge_into',
    'merged_with',
]
