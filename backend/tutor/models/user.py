# tutor/models/user.py
"""
Database model for users.
Represents a learner account: credentials plus the tutoring preferences
(language and tutor persona) that every new session snapshots.
"""
import uuid
from tortoise import fields, models

class User(models.Model):
    """
    User database model.

    Relationships:
    - Has many Sessions (one-to-many, via related_name="sessions")

    Security:
    - Password is stored as an argon2 hash
    - Email is unique and stored lower-cased
    """
    id = fields.UUIDField(pk=True, default=uuid.uuid4)
    name = fields.CharField(max_length=128)
    email = fields.CharField(max_length=256, unique=True, index=True)
    password_hash = fields.CharField(max_length=255)
    language = fields.CharField(max_length=64, default="English")  # Language the tutor answers in
    ai_tutor_name = fields.CharField(max_length=64, default="AI Tutor")  # Display name of the tutor persona
    is_custom_tutor = fields.BooleanField(default=False)  # True once the user picked a non-catalogue tutor
    created_at = fields.DatetimeField(auto_now_add=True)
    updated_at = fields.DatetimeField(auto_now=True)

    class Meta:
        table = "users"

    def to_public(self) -> dict:
        return {
            "id": str(self.id),
            "name": self.name,
            "email": self.email,
            "language": self.language,
            "aiTutorName": self.ai_tutor_name,
            "isCustomTutor": self.is_custom_tutor,
        }
