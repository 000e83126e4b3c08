"""Stores and their clock-in geofence."""

from app.features.stores.geo import haversine_m
from app.features.stores.models import Store

__all__ = ["Store", "haversine_m"]
