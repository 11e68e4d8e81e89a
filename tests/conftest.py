"""
Общие фикстуры тестов Publish Alert.

FakeContentApi - локальный aiohttp сервер, имитирующий API контента,
бинарники изображений и детектор stamps.
"""

import asyncio
from typing import Any, Dict, List, Optional, Tuple

import pytest
from aiohttp import web
from aiohttp.test_utils import TestServer

from publish_alert.crawler import ApiClient

PNG_MAGIC = b'\x89PNG\r\n\x1a\n'
IMAGE_SET_TYPE = 'http://www.ft.com/ontology/content/ImageSet'


def png_bytes(name: str) -> bytes:
    return PNG_MAGIC + name.encode()


class FakeContentApi:
    """
    Имитация всех внешних HTTP сервисов пайплайна.

    - articles: id статьи -> {'title', 'author', 'sets': [id набора]}
    - image_sets: id набора -> [id участника]
    - members: id участника -> имя изображения
    - images: имя изображения -> content-type
    - stamps: имя изображения -> ответ детектора
    - fail: пути, отвечающие 500
    - delays: путь -> задержка ответа в секундах
    """

    def __init__(self):
        self.feed: List[str] = []
        self.feed_payload: Optional[Any] = None
        self.articles: Dict[str, Dict[str, Any]] = {}
        self.image_sets: Dict[str, List[str]] = {}
        self.members: Dict[str, str] = {}
        self.images: Dict[str, str] = {}
        self.stamps: Dict[str, Any] = {}
        self.fail = set()
        self.delays: Dict[str, float] = {}
        self.feed_delay = 0.0

        self.requests: List[Tuple[str, str]] = []
        self.api_keys: List[Optional[str]] = []
        self.feed_since: List[str] = []
        self.detector_content_types: List[str] = []

    def add_article(self, article_id: str, sets: Optional[List[str]] = None, title: str = '', author: str = ''):
        self.feed.append(article_id)
        self.articles[article_id] = {
            'title': title or f"Article {article_id}",
            'author': author,
            'sets': sets or [],
        }

    def add_image_set(self, set_id: str, members: Dict[str, Tuple[str, Any]]):
        """members: id участника -> (content-type, stamps)."""
        self.image_sets[set_id] = list(members)
        for member_id, (content_type, stamps) in members.items():
            name = f"{member_id}-img"
            self.members[member_id] = name
            self.images[name] = content_type
            self.stamps[name] = stamps

    def paths(self, prefix: str) -> List[str]:
        return [path for _, path in self.requests if path.startswith(prefix)]

    @web.middleware
    async def _record(self, request: web.Request, handler):
        self.requests.append((request.method, request.path))
        if request.path in self.fail:
            raise web.HTTPInternalServerError()
        if request.path in self.delays:
            await asyncio.sleep(self.delays[request.path])
        return await handler(request)

    @staticmethod
    def _base(request: web.Request) -> str:
        return str(request.url.origin())

    async def _notifications(self, request: web.Request) -> web.Response:
        self.api_keys.append(request.query.get('apiKey'))
        self.feed_since.append(request.query.get('since'))
        if self.feed_delay:
            await asyncio.sleep(self.feed_delay)
        if self.feed_payload is not None:
            return web.json_response(self.feed_payload)
        base = self._base(request)
        return web.json_response({
            'notifications': [
                {'id': article_id, 'apiUrl': f"{base}/content/{article_id}", 'type': 'CONTENT_UPDATE'}
                for article_id in self.feed
            ]
        })

    async def _article(self, request: web.Request) -> web.Response:
        self.api_keys.append(request.query.get('apiKey'))
        article_id = request.match_info['id']
        if article_id not in self.articles:
            raise web.HTTPNotFound()
        article = self.articles[article_id]
        base = self._base(request)
        refs = ''.join(
            f'<ft-content type="{IMAGE_SET_TYPE}" url="{base}/imagesets/{set_id}" data-embedded="true"></ft-content>'
            for set_id in article['sets']
        )
        return web.json_response({
            'id': article_id,
            'title': article['title'],
            'byline': article['author'],
            'bodyXML': f"<body><p>Text of {article_id}</p>{refs}</body>",
            'webUrl': f"https://www.ft.com/content/{article_id}",
        })

    async def _image_set(self, request: web.Request) -> web.Response:
        self.api_keys.append(request.query.get('apiKey'))
        set_id = request.match_info['id']
        base = self._base(request)
        return web.json_response({
            'id': set_id,
            'members': [{'id': f"{base}/members/{member_id}"} for member_id in self.image_sets[set_id]],
        })

    async def _member(self, request: web.Request) -> web.Response:
        self.api_keys.append(request.query.get('apiKey'))
        member_id = request.match_info['id']
        base = self._base(request)
        return web.json_response({
            'id': member_id,
            'binaryUrl': f"{base}/images/{self.members[member_id]}",
        })

    async def _image(self, request: web.Request) -> web.Response:
        name = request.match_info['name']
        return web.Response(body=png_bytes(name), content_type=self.images[name])

    async def _read(self, request: web.Request) -> web.Response:
        self.detector_content_types.append(request.content_type)
        body = await request.read()
        name = body[len(PNG_MAGIC):].decode()
        return web.json_response(self.stamps.get(name, []))

    def make_app(self) -> web.Application:
        app = web.Application(middlewares=[self._record])
        app.router.add_get('/content/notifications', self._notifications)
        app.router.add_get('/content/{id}', self._article)
        app.router.add_get('/imagesets/{id}', self._image_set)
        app.router.add_get('/members/{id}', self._member)
        app.router.add_get('/images/{name}', self._image)
        app.router.add_post('/read', self._read)
        return app


async def run_against(api: FakeContentApi, scenario, **client_kwargs):
    """Запустить сценарий scenario(base_url, client) против FakeContentApi."""
    client_kwargs.setdefault('api_key', 'KEY')
    client_kwargs.setdefault('timeout', 5.0)
    async with TestServer(api.make_app()) as server:
        base = str(server.make_url('')).rstrip('/')
        async with ApiClient(**client_kwargs) as client:
            return await scenario(base, client)


async def serve_app(app: web.Application, scenario):
    """Поднять произвольное aiohttp приложение и выполнить scenario(base_url)."""
    async with TestServer(app) as server:
        return await scenario(str(server.make_url('')).rstrip('/'))


@pytest.fixture
def api():
    """Фикстура пустого FakeContentApi."""
    return FakeContentApi()


@pytest.fixture
def run(api):
    """run(scenario, **client_kwargs) - синхронный запуск сценария против api."""
    def _run(scenario, **client_kwargs):
        return asyncio.run(run_against(api, scenario, **client_kwargs))
    return _run


@pytest.fixture
def serve():
    """serve(app, scenario) - синхронный запуск сценария против приложения."""
    def _serve(app, scenario):
        return asyncio.run(serve_app(app, scenario))
    return _serve


@pytest.fixture
def png():
    return png_bytes
