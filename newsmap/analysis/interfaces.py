"""Interface definitions for article classification results."""

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from ..ingestion.interfaces import RawArticle


class Category(Enum):
    """Categories a classifier may assign."""
    FLASH = "flash"
    ECONOMY = "economie"
    ENVIRONMENT = "environnement"
    TECH = "tech"
    CULTURE = "culture"
    URGENT = "urgent"
    INTERNATIONAL = "international"


NO_LOCATION = "N/A"

# Classifier payload keys, French first
_KEYS = {
    "title": ("titre", "title"),
    "category": ("categorie", "category"),
    "importance": ("importance",),
    "link": ("lien", "link"),
    "location": ("localisation", "location"),
    "date": ("date",),
    "description": ("description",),
    "image_url": ("imageUrl", "image_url"),
    "latitude": ("latitude",),
    "longitude": ("longitude",),
}


def _pick(data: dict, field_name: str):
    for key in _KEYS[field_name]:
        if key in data:
            return data[key]
    return None


def _is_number(value) -> bool:
    return isinstance(value, (int, float)) and not isinstance(value, bool)


@dataclass
class AnalysisResult:
    """What a classifier says about one article."""
    title: str
    category: Category
    importance: float  # 0.0 to 1.0
    link: str
    location: str
    date: str
    description: str
    image_url: str = ""
    latitude: Optional[float] = None
    longitude: Optional[float] = None

    @property
    def has_coordinates(self) -> bool:
        return self.latitude is not None and self.longitude is not None

    @classmethod
    def from_dict(cls, data: dict, article: RawArticle) -> "AnalysisResult":
        """Validate a classifier payload.

        Raises ValueError when a required field is missing or has the wrong
        type. Unknown categories fall back to ``flash``; a missing image
        falls back to the article's own.
        """
        if not isinstance(data, dict):
            raise ValueError("Classifier payload must be an object")

        strings = {}
        for name in ("title", "category", "link", "location", "date", "description"):
            value = _pick(data, name)
            if not isinstance(value, str):
                raise ValueError(f"Classifier payload field '{name}' must be a string")
            strings[name] = value

        importance = _pick(data, "importance")
        if not _is_number(importance) or not 0.0 <= importance <= 1.0:
            raise ValueError("Classifier payload field 'importance' must be a number between 0 and 1")

        coordinates = {}
        for name in ("latitude", "longitude"):
            value = _pick(data, name)
            if value is not None and not _is_number(value):
                raise ValueError(f"Classifier payload field '{name}' must be a number or null")
            coordinates[name] = float(value) if value is not None else None

        image_url = _pick(data, "image_url")
        if image_url is not None and not isinstance(image_url, str):
            raise ValueError("Classifier payload field 'image_url' must be a string")

        try:
            category = Category(strings["category"].strip().lower())
        except ValueError:
            category = Category.FLASH

        return cls(
            title=strings["title"],
            category=category,
            importance=float(importance),
            link=strings["link"],
            location=strings["location"],
            date=strings["date"],
            description=strings["description"],
            image_url=image_url or article.scraped_image_url or article.image_url or "",
            latitude=coordinates["latitude"],
            longitude=coordinates["longitude"],
        )

    @classmethod
    def fallback(cls, article: RawArticle, reason: str) -> "AnalysisResult":
        """Zero-importance result used when classification fails."""
        return cls(
            title=article.title,
            category=Category.FLASH,
            importance=0.0,
            link=article.link,
            location=reason[:100],
            date=article.pub_date or "",
            description=article.description,
            image_url=article.scraped_image_url or article.image_url or "",
        )


@dataclass
class AnalyzedArticle(RawArticle):
    """A RawArticle joined with its classification."""
    category: Category = Category.FLASH
    importance: float = 0.0
    location: str = NO_LOCATION
    latitude: Optional[float] = None
    longitude: Optional[float] = None

    def to_dict(self) -> dict:
        """Convert to dictionary."""
        data = super().to_dict()
        data.update({
            "category": self.category.value,
            "importance": self.importance,
            "location": self.location,
            "latitude": self.latitude,
            "longitude": self.longitude,
        })
        return data


class ClassifierInterface:
    """Interface for article classification (e.g. an LLM call)."""

    async def classify(self, article: RawArticle) -> AnalysisResult:
        """Classify a single article."""
        raise NotImplementedError
