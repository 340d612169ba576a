"""Classification boundary - analysis results, merging and GeoJSON export."""

from .interfaces import Category, AnalysisResult, AnalyzedArticle, ClassifierInterface
from .merge import merge_analysis, analyze_articles, to_geojson

__all__ = [
    "Category", "AnalysisResult", "AnalyzedArticle", "ClassifierInterface",
    "merge_analysis", "analyze_articles", "to_geojson",
]
