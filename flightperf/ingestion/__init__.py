"""
Data ingestion module for FlightPerf.

Bulk-loads historical flight CSV exports and the airline/airport
reference tables into the relational database.
"""

from flightperf.ingestion.csv_loader import load_flights_csv, seed_reference_data

__all__ = ['load_flights_csv', 'seed_reference_data']
