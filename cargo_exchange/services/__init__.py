# cargo_exchange/services/__init__.py
"""
Внешние интерфейсы приложения.

Сервисы:
- marketplace_api: HTTP API биржи (FastAPI)
"""
