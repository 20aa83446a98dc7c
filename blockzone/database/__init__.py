from .base import DatabaseManager, create_store
