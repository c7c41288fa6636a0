"""API configuration adapter.

Bridges the centralized hera_config settings with the posting engine:
the posting policy and the account mapping table are built once per
process and injected into the pipeline.
"""

import logging
from functools import lru_cache
from pathlib import Path

from hera.domain.posting.value_objects import AccountMappingTable, PostingPolicy
from hera_config.settings import Settings, get_config_dir, get_settings

logger = logging.getLogger(__name__)


@lru_cache
def get_api_settings() -> Settings:
    """Get settings from centralized configuration."""
    return get_settings()


def build_posting_policy(settings: Settings) -> PostingPolicy:
    """Translate the flat settings into the posting policy value object."""
    return PostingPolicy(
        immediate_threshold=settings.posting_immediate_threshold,
        batch_threshold=settings.posting_batch_threshold,
        min_ai_confidence=settings.posting_min_ai_confidence,
        escalation_timeout=settings.ai_timeout,
        persistence_timeout=settings.posting_persistence_timeout,
    )


def load_account_mapping(settings: Settings) -> AccountMappingTable:
    """Load the account mapping table.

    A relative ``account_mapping_file`` is resolved against the config
    directory. Without a file the built-in table is used.
    """
    if not settings.account_mapping_file:
        return AccountMappingTable.default()

    path = Path(settings.account_mapping_file)
    if not path.is_absolute():
        path = get_config_dir() / path

    mapping = AccountMappingTable.from_json_file(path)
    logger.info(
        "Loaded account mapping %s from %s (%d rules)",
        mapping.version,
        path,
        len(mapping.rules),
    )
    return mapping
