# tracker/tools/__init__.py
"""
Офлайн-утилиты обслуживания данных.
"""
