"""
Airport and Airline models - static reference data.

Maps codes to display names and, for airports, to the city/state used
for regional roll-ups. Loaded once and rarely changed.
"""

from typing import Optional

from sqlalchemy import String, Float
from sqlalchemy.orm import Mapped, mapped_column

from flightperf.models.base import Base
from flightperf.models.records import AirportRef, AirlineRef


class Airport(Base):
    """Airport reference row keyed by IATA code."""

    __tablename__ = 'airports'

    airport_code: Mapped[str] = mapped_column(
        String(5),
        primary_key=True,
        comment='IATA airport code (e.g., JFK)'
    )

    airport_name: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    city: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)

    state: Mapped[Optional[str]] = mapped_column(
        String(2),
        nullable=True,
        index=True,
        comment='State/province used for regional aggregation'
    )

    latitude: Mapped[Optional[float]] = mapped_column(Float, nullable=True)
    longitude: Mapped[Optional[float]] = mapped_column(Float, nullable=True)

    def __repr__(self) -> str:
        return f'<Airport {self.airport_code} {self.airport_name or "?"}>'

    def to_ref(self) -> AirportRef:
        return AirportRef(
            code=self.airport_code,
            name=self.airport_name,
            city=self.city,
            state=self.state,
            latitude=self.latitude,
            longitude=self.longitude,
        )


class Airline(Base):
    """Airline reference row keyed by carrier code."""

    __tablename__ = 'airlines'

    airline_code: Mapped[str] = mapped_column(
        String(10),
        primary_key=True,
        comment='Carrier code (e.g., DL)'
    )

    airline_name: Mapped[Optional[str]] = mapped_column(String(100), nullable=True)
    country: Mapped[Optional[str]] = mapped_column(String(50), nullable=True)

    def __repr__(self) -> str:
        return f'<Airline {self.airline_code} {self.airline_name or "?"}>'

    def to_ref(self) -> AirlineRef:
        return AirlineRef(
            code=self.airline_code,
            name=self.airline_name,
            country=self.country,
        )
