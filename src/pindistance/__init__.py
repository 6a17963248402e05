"""PinDistance: tap a point on the map, get the distance from where you are."""

__version__ = "0.1.0"
