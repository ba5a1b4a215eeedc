"""Database models and declarative base."""
