"""Allow running as ``python -m y3_bridge.cli``."""

from .main import main

main()
