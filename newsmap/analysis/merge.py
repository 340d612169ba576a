"""Joining classification results onto ingested articles."""

from dataclasses import fields as dataclass_fields
from typing import List

import structlog

from .interfaces import AnalysisResult, AnalyzedArticle, ClassifierInterface
from ..config.settings import settings
from ..ingestion.interfaces import RawArticle

logger = structlog.get_logger()


def merge_analysis(article: RawArticle, result: AnalysisResult) -> AnalyzedArticle:
    """Overlay classifier fields on an article.

    The classifier's title, link, date and description win when non-empty.
    Image preference: classifier, scraped page, feed.
    """
    fields = {f.name: getattr(article, f.name) for f in dataclass_fields(RawArticle)}
    fields.update(
        title=result.title or article.title,
        link=result.link or article.link,
        pub_date=result.date or article.pub_date,
        description=result.description or article.description,
        image_url=result.image_url or article.scraped_image_url or article.image_url,
    )
    return AnalyzedArticle(
        **fields,
        category=result.category,
        importance=result.importance,
        location=result.location,
        latitude=result.latitude,
        longitude=result.longitude,
    )


async def analyze_articles(
    articles: List[RawArticle],
    classifier: ClassifierInterface,
    limit: int = None,
) -> List[AnalyzedArticle]:
    """Classify up to ``limit`` articles one at a time.

    A failing classification produces a fallback record carrying the error
    message instead of aborting the batch.
    """
    limit = limit or settings.max_articles_to_analyze
    analyzed = []
    failed = 0

    for article in articles[:limit]:
        try:
            result = await classifier.classify(article)
        except Exception as e:
            failed += 1
            logger.warning("article_classification_failed", title=article.title[:80], error=str(e))
            result = AnalysisResult.fallback(article, f"Analysis error: {e}")
        analyzed.append(merge_analysis(article, result))

    logger.info("articles_analyzed", analyzed=len(analyzed), failed=failed)
    return analyzed


def to_geojson(articles: List[AnalyzedArticle]) -> dict:
    """Build a GeoJSON FeatureCollection of the articles that have coordinates."""
    features = []
    for article in articles:
        if article.latitude is None or article.longitude is None:
            continue
        features.append({
            "type": "Feature",
            "geometry": {
                "type": "Point",
                "coordinates": [article.longitude, article.latitude],
            },
            "properties": {
                "title": article.title,
                "category": article.category.value,
                "importance": article.importance,
                "link": article.link,
                "location": article.location,
                "date": article.pub_date or "",
                "description": article.description,
                "image_url": article.image_url or "",
            },
        })
    return {"type": "FeatureCollection", "features": features}
