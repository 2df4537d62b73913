"""Request-scoped access to the components built by the app factory."""

from __future__ import annotations

from fastapi import Request

from guesthouse.domain.availability import AvailabilityChecker
from guesthouse.domain.bookings import BookingCoordinator
from guesthouse.infra.db import Database


def get_database(request: Request) -> Database:
    return request.app.state.database


def get_coordinator(request: Request) -> BookingCoordinator:
    return request.app.state.coordinator


def get_checker(request: Request) -> AvailabilityChecker:
    return request.app.state.checker
