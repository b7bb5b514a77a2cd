"""
Flight model - the historical flight fact table.

One row per scheduled flight, keyed by a synthetic id. The table is
loaded in bulk and only ever read by the analytics layer.

Design notes:
- Delay columns are integer minutes, nullable (BTS leaves them empty
  for cancelled and diverted flights)
- Indexed for the predicates the analyses filter on: airline, origin,
  dest, route, date, delay and cancellation
"""

from datetime import date, time
from typing import Optional

from sqlalchemy import String, Integer, Float, Date, Time, Boolean, Index
from sqlalchemy.orm import Mapped, mapped_column

from flightperf.models.base import Base
from flightperf.models.records import FlightRecord


class Flight(Base):
    """
    A single historical flight.

    Columns mirror the BTS on-time performance export with the five
    delay-cause components broken out.
    """

    __tablename__ = 'flights'

    # Surrogate primary key for efficient inserts
    flight_id: Mapped[int] = mapped_column(
        Integer,
        primary_key=True,
        autoincrement=True,
        comment='Surrogate key'
    )

    flight_date: Mapped[date] = mapped_column(
        Date,
        nullable=False,
        index=True,
        comment='Scheduled flight date'
    )

    airline: Mapped[str] = mapped_column(
        String(10),
        nullable=False,
        index=True,
        comment='Marketing/operating carrier code (e.g., AA)'
    )

    flight_number: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        comment='Flight number'
    )

    origin: Mapped[str] = mapped_column(
        String(5),
        nullable=False,
        index=True,
        comment='Origin airport code'
    )

    dest: Mapped[str] = mapped_column(
        String(5),
        nullable=False,
        index=True,
        comment='Destination airport code'
    )

    # Schedule
    scheduled_dep_time: Mapped[Optional[time]] = mapped_column(Time, nullable=True)
    actual_dep_time: Mapped[Optional[time]] = mapped_column(Time, nullable=True)
    scheduled_arr_time: Mapped[Optional[time]] = mapped_column(Time, nullable=True)
    actual_arr_time: Mapped[Optional[time]] = mapped_column(Time, nullable=True)

    dep_delay: Mapped[Optional[int]] = mapped_column(
        Integer,
        nullable=True,
        index=True,
        comment='Departure delay in minutes (negative = early)'
    )

    arr_delay: Mapped[Optional[int]] = mapped_column(
        Integer,
        nullable=True,
        comment='Arrival delay in minutes (negative = early)'
    )

    # Cancellation
    cancelled: Mapped[bool] = mapped_column(
        Boolean,
        default=False,
        index=True,
        comment='Flight was cancelled'
    )

    cancellation_code: Mapped[Optional[str]] = mapped_column(
        String(1),
        nullable=True,
        comment='A=Carrier, B=Weather, C=NAS, D=Security'
    )

    distance: Mapped[Optional[float]] = mapped_column(
        Float,
        nullable=True,
        comment='Route distance in miles'
    )

    # Delay cause breakdown (minutes)
    carrier_delay: Mapped[Optional[int]] = mapped_column(Integer, nullable=True, default=0)
    weather_delay: Mapped[Optional[int]] = mapped_column(Integer, nullable=True, default=0)
    nas_delay: Mapped[Optional[int]] = mapped_column(Integer, nullable=True, default=0)
    security_delay: Mapped[Optional[int]] = mapped_column(Integer, nullable=True, default=0)
    late_aircraft_delay: Mapped[Optional[int]] = mapped_column(Integer, nullable=True, default=0)

    __table_args__ = (
        # Route lookups and route-level grouping
        Index('ix_flights_route', 'origin', 'dest'),
    )

    def __repr__(self) -> str:
        return f'<Flight {self.airline}{self.flight_number} {self.origin}-{self.dest} {self.flight_date}>'

    def to_record(self) -> FlightRecord:
        """Detach into an immutable record for the analytics layer."""
        return FlightRecord(
            flight_date=self.flight_date,
            airline=self.airline,
            flight_number=self.flight_number,
            origin=self.origin,
            dest=self.dest,
            scheduled_dep_time=self.scheduled_dep_time,
            actual_dep_time=self.actual_dep_time,
            scheduled_arr_time=self.scheduled_arr_time,
            actual_arr_time=self.actual_arr_time,
            dep_delay=self.dep_delay,
            arr_delay=self.arr_delay,
            cancelled=bool(self.cancelled),
            cancellation_code=self.cancellation_code,
            distance=self.distance,
            carrier_delay=self.carrier_delay,
            weather_delay=self.weather_delay,
            nas_delay=self.nas_delay,
            security_delay=self.security_delay,
            late_aircraft_delay=self.late_aircraft_delay,
        )
