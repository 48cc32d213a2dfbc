# cargo_exchange/core/__init__.py
"""
Доменная логика.

Модули:
- geo: координаты, расстояние, геокодирование
- cargo: описание груза
- pricing: тарифы и расчёт цены
- users: пользователи и транспорт
- orders: заказы, хранилища, вместимость, жизненный цикл
- matching: подбор транспорта под груз
- booking: оформление перевозки
"""
