"""Ingestion pipeline: platform adapters, normalization, and persistence."""

from premisehub.ingestion.reddit_adapter import RedditAdapter
from premisehub.ingestion.registry import register_adapter
from premisehub.ingestion.tiktok_adapter import TikTokAdapter
from premisehub.ingestion.youtube_adapter import YouTubeAdapter
from premisehub.platforms import Platform

register_adapter(Platform.YOUTUBE, YouTubeAdapter)
register_adapter(Platform.REDDIT, RedditAdapter)
register_adapter(Platform.TIKTOK, TikTokAdapter)
