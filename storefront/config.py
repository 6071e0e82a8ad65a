"""
Configuration settings for the application.
"""

import logging
import os

from dotenv import load_dotenv

load_dotenv()


def _split_list(raw: str) -> list[str]:
    return [item.strip().lower() for item in raw.split(",") if item.strip()]


class Settings:
    """Application settings loaded from environment variables."""

    # Environment
    ENVIRONMENT: str = os.getenv("ENVIRONMENT", "development")

    # Redis settings
    REDIS_URL: str = os.getenv("REDIS_URL", "redis://localhost:6379/0")
    PRODUCT_COUNT_KEY_PREFIX: str = os.getenv(
        "PRODUCT_COUNT_KEY_PREFIX",
        "collection-count:",
    )
    PRODUCT_COUNT_TTL_SECONDS: int = int(os.getenv("PRODUCT_COUNT_TTL_SECONDS", "300"))

    # Storefront API settings
    STOREFRONT_DOMAIN: str = os.getenv("STOREFRONT_DOMAIN", "localhost")
    STOREFRONT_API_VERSION: str = os.getenv("STOREFRONT_API_VERSION", "2025-01")
    STOREFRONT_API_TOKEN: str | None = os.getenv("STOREFRONT_API_TOKEN")
    STOREFRONT_TIMEOUT_SECONDS: float = float(
        os.getenv("STOREFRONT_TIMEOUT_SECONDS", "10")
    )

    # Listing / pagination
    PAGE_SIZE: int = int(os.getenv("PAGE_SIZE", "12"))
    COUNT_PAGE_SIZE: int = int(os.getenv("COUNT_PAGE_SIZE", "250"))

    # Facet display
    CANONICAL_CATEGORY_GROUP: str = os.getenv(
        "CANONICAL_CATEGORY_GROUP", "categories"
    ).lower()
    CANONICAL_CATEGORY_ORDER: list[str] = _split_list(
        os.getenv(
            "CANONICAL_CATEGORY_ORDER",
            "headware,apparel,leather goods,uniforms,carry,accessories,drinkware",
        )
    )
    LEGACY_CATEGORY_GROUP: str = os.getenv("LEGACY_CATEGORY_GROUP", "category")
    LEGACY_CATEGORY_EXCLUDE_MARKER: str = os.getenv(
        "LEGACY_CATEGORY_EXCLUDE_MARKER", "men"
    )

    # URL filter tokens that are not JSON objects: "none" keeps them
    # ungrouped, "prefix" groups them by the text before the first ":".
    FILTER_RAW_TOKEN_GROUPING: str = os.getenv("FILTER_RAW_TOKEN_GROUPING", "none")

    # Cascade animation timings, in milliseconds
    CASCADE_BUDGET_MS: float = float(os.getenv("CASCADE_BUDGET_MS", "200"))
    CASCADE_LEAD_OUT_MS: float = float(os.getenv("CASCADE_LEAD_OUT_MS", "150"))

    @property
    def is_production(self) -> bool:
        """
        Check if running in production environment.
        """
        return self.ENVIRONMENT.lower() == "production"

    @property
    def storefront_api_url(self) -> str:
        """GraphQL endpoint of the storefront API."""
        return (
            f"https://{self.STOREFRONT_DOMAIN}/api/"
            f"{self.STOREFRONT_API_VERSION}/graphql.json"
        )

    @property
    def storefront_enabled(self) -> bool:
        """Return True when a storefront client can be initialized."""
        return bool(self.STOREFRONT_API_TOKEN)

    def __init__(self):
        self.log_level = os.getenv("LOG_LEVEL", "INFO")
        logging.basicConfig(level=self.log_level)
        self.logger = logging.getLogger(__name__)

        self.logger.debug(
            f"Config initialized with environment={self.ENVIRONMENT}, "
            f"log_level={self.log_level}"
        )


# Create a global settings instance for import
settings = Settings()
