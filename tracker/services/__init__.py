# tracker/services/__init__.py
"""
HTTP-сервисы трекера.
"""
