"""Run the Steer Router CLI with ``python -m steer_router``."""

from .cli import main

main()
