# tutor/schemas/__init__.py
"""
Schema module initialization.
Exports all request models from submodules for convenient imports.
"""
from .auth import *
from .media import *
from .session import *
