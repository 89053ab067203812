"""Entry point: python -m conduit_monitor"""

from conduit_monitor.cli.app import app

if __name__ == "__main__":
    app()
