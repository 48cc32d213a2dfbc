# cargo_exchange/services/marketplace_api/__init__.py
"""
Marketplace API.
Подбор транспорта, оформление заказов, торг и исполнение.
"""
