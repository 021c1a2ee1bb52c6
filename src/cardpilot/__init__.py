"""CardPilot — automated payment-card updates for streaming accounts."""

__version__ = "0.1.0"
