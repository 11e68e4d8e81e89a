"""
Publish Alert - мониторинг публикаций с графиками Nightingale.

Периодически опрашивает ленту уведомлений о контенте, находит новые статьи,
проверяет PNG изображения на наличие невидимого водяного знака ("stamp")
и создает задачу в Asana + сообщение в Slack при совпадении.

Enable components via config/features.yaml:
    publish_alert:
      enabled: true
      components:
        notifier: true
        health_check: true
        retry: true

Components:
- crawler/        - Feed, Article, ImageSet, Image и Stamp Detector клиенты
- orchestrator.py - Один цикл опроса (fan-out / fan-in)
- poller/         - Периодический запуск циклов
- notifications/  - Asana + Slack уведомления
- service.py      - Главный сервис координации

Quick Start:
    from publish_alert.service import PublishAlertService
    import asyncio

    async def main():
        service = PublishAlertService(feed_root="https://api.ft.com", api_key="KEY")
        await service.initialize()
        await service.start()

    asyncio.run(main())
"""

__version__ = '0.1.0'
__author__ = 'Publish Alert Team'

__all__ = ['__version__']
