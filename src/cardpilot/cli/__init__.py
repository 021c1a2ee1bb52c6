"""CardPilot command-line interface."""
