"""Directories over the blob store: forum topics and known users."""

from tgrelay.directory.registry import MAX_USERS_LIMIT, UserRegistry
from tgrelay.directory.topics import TopicDirectory

__all__ = ["MAX_USERS_LIMIT", "TopicDirectory", "UserRegistry"]
