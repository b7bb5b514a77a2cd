"""
FlightPerf Package.

Historical flight performance analytics built with Flask, SQLAlchemy, and NumPy.

Modules:
    api/         REST endpoints for dashboard reports and analyses
    models/      SQLAlchemy ORM models (Flight, Airport, Airline) and immutable records
    store/       Record store adapters (SQL, in-memory) consumed by the analytics core
    analytics/   Aggregation engine, scoring rules, ranked analyses and trends
    reports/     Dashboard result records and the report assembler
    ingestion/   CSV bulk loading and reference data seeding
    config.py    Centralized configuration from environment variables
    errors.py    Exception types surfaced at the request boundary
"""

__version__ = '1.0.0'
