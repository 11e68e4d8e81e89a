"""
Asana + Slack Notification Service для Publish Alert.

Для каждой статьи со stamps создает задачу в Asana, прикладывает PNG
с найденными водяными знаками и публикует ссылку на задачу в Slack.
"""

import asyncio
import logging
from typing import Any, Dict, Optional

import aiohttp

from publish_alert.config import get_limit, is_component_enabled
from publish_alert.crawler.images import PNG_CONTENT_TYPE, image_name
from publish_alert.models import ArticleReport
from publish_alert.retry import retry_async

logger = logging.getLogger(__name__)

DEFAULT_ASANA_API_URL = 'https://app.asana.com/api/1.0'
ASANA_TASK_LINK = 'https://app.asana.com/0/{project_id}/{task_id}'
DEFAULT_MAX_ATTACHMENTS = 10
DEFAULT_SLACK_ATTEMPTS = 3


def format_task_name(entry: ArticleReport) -> str:
    return f'Nightingale chart published in article "{entry.article.title}"'


def format_slack_message(task_name: str, task_link: str) -> str:
    return (
        f"<!channel>\nTask: {task_name}"
        f"\nTo review the chart(s) click the following link: <{task_link}| {task_name}>"
    )


class AsanaSlackNotifier:
    """
    Сервис уведомлений Asana + Slack.

    Особенности:
    - Одна задача Asana на статью
    - PNG вложения для каждого изображения со stamps
    - Одно сообщение в Slack на задачу
    - Ошибки логируются и не выходят за пределы notify()
    """

    def __init__(
        self,
        asana_api_key: str,
        project_id: str,
        workspace_id: str,
        slack_webhook: Optional[str] = None,
        asana_api_url: str = DEFAULT_ASANA_API_URL,
        timeout: float = 30.0,
        max_attachments: Optional[int] = None,
        retry_attempts: Optional[int] = None,
        retry_delay: float = 1.0,
    ):
        """
        Args:
            asana_api_key: Personal access token / API key Asana (basic auth)
            project_id: ID проекта Asana
            workspace_id: ID workspace Asana
            slack_webhook: URL incoming webhook Slack (без него Slack пропускается)
            asana_api_url: Базовый URL Asana API
            timeout: Таймаут HTTP запросов
            max_attachments: Максимум вложений на задачу
            retry_attempts: Попытки отправки в Slack (по умолчанию 3, 1 если retry отключен)
            retry_delay: Начальная задержка между попытками
        """
        self.asana_api_url = asana_api_url.rstrip('/')
        self.project_id = project_id
        self.workspace_id = workspace_id
        self.slack_webhook = slack_webhook
        self.auth = aiohttp.BasicAuth(asana_api_key, '')
        self.timeout = aiohttp.ClientTimeout(total=timeout)
        self.max_attachments = max_attachments or get_limit('max_attachments_per_task') or DEFAULT_MAX_ATTACHMENTS
        if retry_attempts is None:
            retry_attempts = DEFAULT_SLACK_ATTEMPTS if is_component_enabled('retry') else 1
        self.retry_attempts = retry_attempts
        self.retry_delay = retry_delay
        self._http_session: Optional[aiohttp.ClientSession] = None

        self.stats = {
            'tasks_created': 0,
            'attachments_uploaded': 0,
            'slack_posts': 0,
            'failures': 0,
        }

    async def get_session(self) -> aiohttp.ClientSession:
        """Получить HTTP сессию."""
        if self._http_session is None or self._http_session.closed:
            self._http_session = aiohttp.ClientSession(timeout=self.timeout)
        return self._http_session

    async def close(self):
        """Закрыть сессию."""
        if self._http_session and not self._http_session.closed:
            await self._http_session.close()

    async def notify(self, entry: ArticleReport) -> Optional[str]:
        """
        Создать задачу и оповестить Slack о статье со stamps.

        Returns:
            ID задачи Asana или None при ошибке
        """
        logger.info(f"📤 Добавление задачи Asana для статьи {entry.url}")
        try:
            task_id = await self.create_task(entry)
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            self.stats['failures'] += 1
            logger.error(f"❌ Не удалось создать задачу Asana для {entry.url}: {e!r}")
            return None

        images = [image for image in entry.images if image.stamps][:self.max_attachments]
        for image in images:
            try:
                await self.upload_attachment(task_id, image.uri)
            except (aiohttp.ClientError, asyncio.TimeoutError) as e:
                self.stats['failures'] += 1
                logger.error(f"❌ Ошибка загрузки вложения {image_name(image.uri)}: {e!r}")

        if self.slack_webhook:
            try:
                await self.post_to_slack(format_task_name(entry), task_id)
            except (aiohttp.ClientError, asyncio.TimeoutError) as e:
                self.stats['failures'] += 1
                logger.error(f"❌ Ошибка отправки в Slack для задачи {task_id}: {e!r}")

        return task_id

    async def create_task(self, entry: ArticleReport) -> str:
        session = await self.get_session()
        payload = {
            'data': {
                'workspace': self.workspace_id,
                'projects': [self.project_id],
                'name': format_task_name(entry),
                'notes': f"{entry.url}\nAuthor: {entry.article.author}",
            }
        }
        async with session.post(f"{self.asana_api_url}/tasks", json=payload, auth=self.auth) as resp:
            resp.raise_for_status()
            body: Dict[str, Any] = await resp.json(content_type=None)

        data = body.get('data') if isinstance(body, dict) else None
        task_id = (data or {}).get('gid') or (data or {}).get('id')
        if not task_id:
            raise ValueError('Asana response has no task id')

        task_id = str(task_id)
        self.stats['tasks_created'] += 1
        logger.info(f"✅ Задача Asana создана: {task_id}")
        return task_id

    async def upload_attachment(self, task_id: str, image_url: str):
        """Скачать изображение заново и приложить к задаче как PNG."""
        session = await self.get_session()
        async with session.get(image_url) as resp:
            resp.raise_for_status()
            data = await resp.read()

        form = aiohttp.FormData()
        form.add_field(
            'file',
            data,
            filename=f"{image_name(image_url)}.png",
            content_type=PNG_CONTENT_TYPE,
        )

        logger.debug(f"Uploading attachment to task {task_id}")
        async with session.post(
            f"{self.asana_api_url}/tasks/{task_id}/attachments",
            data=form,
            auth=self.auth,
        ) as resp:
            resp.raise_for_status()
            logger.debug(await resp.text())

        self.stats['attachments_uploaded'] += 1

    async def post_to_slack(self, task_name: str, task_id: str):
        task_link = ASANA_TASK_LINK.format(project_id=self.project_id, task_id=task_id)
        payload = {'text': format_slack_message(task_name, task_link)}

        async def send():
            session = await self.get_session()
            async with session.post(self.slack_webhook, json=payload) as resp:
                resp.raise_for_status()

        await retry_async(
            send,
            max_attempts=self.retry_attempts,
            initial_delay=self.retry_delay,
            name='POST slack webhook',
        )

        self.stats['slack_posts'] += 1
        logger.info(f"✅ Slack уведомление отправлено для задачи {task_id}")

    def get_stats(self) -> Dict[str, int]:
        return self.stats.copy()


__all__ = ['AsanaSlackNotifier', 'format_slack_message', 'format_task_name']
