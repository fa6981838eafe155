#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
MoodBuddy - Database Package
SQLAlchemy схема, менеджер подключений и реализации хранилищ
"""

from .manager import DatabaseError, DatabaseManager, StoreUnavailable, create_database_manager
from .repositories import Repositories

__all__ = [
    'DatabaseError',
    'DatabaseManager',
    'StoreUnavailable',
    'create_database_manager',
    'Repositories'
]
