# tutor/core/__init__.py
"""
Core application modules.
Contains essential infrastructure components:
- db: Database configuration and connection management
- errors: Application error types and their HTTP status codes
- pubsub: Room-based WebSocket broadcasting for tutoring sessions
- security: Password hashing and JWT handling
"""
