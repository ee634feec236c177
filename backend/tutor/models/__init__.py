# tutor/models/__init__.py
"""
Database models module initialization.
Exports all Tortoise ORM models for convenient imports.

Models exported:
- User: Learner account and tutoring preferences
- Session: Tutoring conversation (belongs to User)
- Message: One chat message (belongs to Session)
"""
from .user import User
from .session import Session, Message
