"""TicketDesk: support-ticket tracking with topics and an enforced status lifecycle."""

__version__ = "1.0.0"
