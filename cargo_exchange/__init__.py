# cargo_exchange/__init__.py
"""
Биржа грузоперевозок.

Заказчики публикуют грузы, перевозчики предлагают транспорт и цену.
Ядро (core) не зависит от HTTP слоя и внешних сервисов,
инфраструктура (infra) подключается в services.
"""
