"""Call Mate: back office and AI receptionist for home-service businesses."""

__version__ = "0.1.0"
