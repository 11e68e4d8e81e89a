"""
Image-Set Resolver.

Извлекает ссылки на ImageSet из разметки статьи и превращает каждую ссылку
в URL бинарника первого участника набора (два зависимых запроса на ссылку).
"""

import asyncio
import logging
from typing import List, Tuple

import aiohttp
from bs4 import BeautifulSoup

from publish_alert.crawler.http import ApiClient
from publish_alert.errors import ImageSetResolutionFailed
from publish_alert.models import Article
from publish_alert.settle import Settled, settle_all

logger = logging.getLogger(__name__)

IMAGE_SET_SELECTOR = 'ft-content[type*="/ImageSet"]'


def extract_image_set_references(markup: str) -> List[str]:
    """
    Найти ссылки на ImageSet в разметке статьи.

    Args:
        markup: bodyXML статьи

    Returns:
        URL наборов в порядке документа, без повторов. Пустой список,
        если в статье нет графиков.
    """
    if not markup:
        return []

    soup = BeautifulSoup(markup, 'html.parser')
    references: List[str] = []
    for element in soup.select(IMAGE_SET_SELECTOR):
        url = element.get('url')
        if url and url not in references:
            references.append(url)
    return references


class ImageSetResolver:

    def __init__(self, client: ApiClient):
        self.client = client

    async def resolve_reference(self, reference_url: str) -> str:
        """
        Получить binaryUrl первого участника ImageSet.

        В наборе может быть несколько рендеров, проверяется только первый.
        Остальные участники никогда не запрашиваются.

        Raises:
            ImageSetResolutionFailed: ошибка одного из двух запросов или пустой набор
        """
        try:
            image_set = await self.client.get_json(reference_url)
            members = image_set.get('members') if isinstance(image_set, dict) else None
            if not members:
                raise ValueError('ImageSet has no members')

            member_id = members[0].get('id') if isinstance(members[0], dict) else None
            if not member_id:
                raise ValueError('ImageSet member has no id')

            member = await self.client.get_json(member_id)
            binary_url = member.get('binaryUrl') if isinstance(member, dict) else None
            if not binary_url:
                raise ValueError(f"ImageSet member {member_id} has no binaryUrl")
        except (aiohttp.ClientError, asyncio.TimeoutError, ValueError) as e:
            raise ImageSetResolutionFailed(reference_url, e) from e

        logger.debug(f"Got binary url for ImageSet member {member_id}")
        return binary_url

    async def settle_image_sets(self, article: Article) -> List[Tuple[str, Settled[str]]]:
        """
        Разрешить все ImageSet статьи параллельно.

        Returns:
            Пары (ссылка, Settled) в порядке документа. Ошибка одной ссылки
            не мешает остальным.
        """
        references = extract_image_set_references(article.body_markup)
        if not references:
            logger.debug(f"В статье {article.id} нет ImageSet")
            return []

        results = await settle_all(self.resolve_reference(url) for url in references)
        return list(zip(references, results))

    async def resolve_image_sets(self, article: Article) -> List[str]:
        """URL бинарников статьи. Ошибочные ссылки логируются и пропускаются."""
        settled = await self.settle_image_sets(article)

        urls: List[str] = []
        for reference, result in settled:
            if result.ok:
                urls.append(result.value)
            else:
                logger.error(f"❌ Ошибка ImageSet {reference}: {result.error}")

        logger.debug(f"ImageSets статьи {article.id}: {len(urls)}/{len(settled)} разрешено")
        return urls


__all__ = ['extract_image_set_references', 'ImageSetResolver', 'IMAGE_SET_SELECTOR']
