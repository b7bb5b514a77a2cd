"""
Configuration management for FlightPerf.

Loads settings from environment variables with sensible defaults.
All support thresholds and result limits live here so the analytics
layer never hard-codes a magic number that a deployment might tune.
"""

import os
from dataclasses import dataclass, field

from dotenv import load_dotenv

load_dotenv()


def _env_bool(name: str, default: str = '0') -> bool:
    """Parse a '1'/'true'/'yes' style flag."""
    return os.getenv(name, default).strip().lower() in ('1', 'true', 'yes', 'on')


@dataclass(frozen=True)
class DatabaseConfig:
    """Database configuration."""
    url: str = os.getenv('DATABASE_URL', 'sqlite:///flights.db')
    query_timeout_seconds: float = float(os.getenv('QUERY_TIMEOUT_SECONDS', '30'))

    @property
    def is_sqlite(self) -> bool:
        return self.url.startswith('sqlite')


@dataclass(frozen=True)
class AnalyticsConfig:
    """
    Support thresholds and result limits for the analytics queries.

    Every *_min_flights value is exclusive: a group is reported only
    when its flight count is strictly greater than the threshold.
    """
    route_min_flights: int = 10
    top_routes_min_flights: int = 100
    delayed_routes_min_flights: int = 50
    weather_airport_min_flights: int = 100
    airline_min_flights: int = 1000
    ranking_min_flights: int = 1000
    reliability_min_flights: int = 100
    congestion_min_flights: int = 20
    region_min_flights: int = 1000
    risk_min_flights: int = 0

    risk_window_days: int = int(os.getenv('RISK_WINDOW_DAYS', '90'))
    max_sequence_position: int = 20

    delay_analysis_limit: int = 50
    delayed_routes_limit: int = 10
    reliability_limit: int = 20
    hub_limit: int = 20
    risk_limit: int = 50
    top_routes_limit: int = 10
    delayed_flights_limit: int = 100

    # Airports missing from the reference table are dropped unless enabled
    include_unmapped_regions: bool = _env_bool('INCLUDE_UNMAPPED_REGIONS')


@dataclass(frozen=True)
class IngestionConfig:
    """CSV bulk-load settings."""
    batch_size: int = int(os.getenv('INGEST_BATCH_SIZE', '5000'))


@dataclass(frozen=True)
class AppConfig:
    """Main application configuration."""
    database: DatabaseConfig
    analytics: AnalyticsConfig
    ingestion: IngestionConfig

    # Flask settings
    secret_key: str
    debug: bool = field(default=False)


def load_config() -> AppConfig:
    """Load and validate all configuration."""
    return AppConfig(
        database=DatabaseConfig(),
        analytics=AnalyticsConfig(),
        ingestion=IngestionConfig(),
        secret_key=os.getenv('SECRET_KEY', 'dev-key-change-in-prod'),
        debug=os.getenv('FLASK_DEBUG', '0') == '1',
    )


# Singleton instance
config = load_config()
