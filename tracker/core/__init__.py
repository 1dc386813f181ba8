# tracker/core/__init__.py
"""
Доменный слой: журнал точек, кодек, фильтры, материализация.
Не зависит от HTTP-слоя и глобальных настроек.
"""
